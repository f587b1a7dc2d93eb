"""Catalog service - Categories and bookable services of a clinic"""

import logging

from bson import ObjectId
from pymongo.database import Database

from ...errors import conflict
from ...shared.documents import utcnow
from .aggregate import load_clinic, require_ids, require_item
from .backlinks import diff_references, sync_service_doctors
from .mappers import public_category, public_service
from .plans import limit_reached_message
from .repository import ClinicRepository
from .schemas import CategoryCreate, CategoryUpdate, ServiceCreate, ServiceUpdate

logger = logging.getLogger(__name__)


class CatalogService:
    """Service layer for categories and services"""

    def __init__(self, db: Database):
        self.db = db
        self.repo = ClinicRepository()

    # ========================================================================
    # CATEGORIES
    # ========================================================================
    # The category list is read, modified and written back as a whole, so two
    # concurrent edits on the same clinic can overwrite each other.

    def add_category(self, clinic_id: str, data: CategoryCreate) -> dict:
        clinic = load_clinic(self.db, clinic_id)
        now = utcnow()
        category = {"_id": ObjectId(), "name": data.name, "createdAt": now, "updatedAt": now}
        categories = [*clinic.get("categories", []), category]
        self.repo.replace_arrays(self.db, clinic["_id"], {"categories": categories})
        return {"message": "Category created successfully", "category": public_category(category)}

    def update_category(self, clinic_id: str, category_id: str, data: CategoryUpdate) -> dict:
        clinic = load_clinic(self.db, clinic_id)
        category = require_item(clinic, "categories", category_id, "Category not found")
        if data.name is None:
            return {"message": "No changes"}

        now = utcnow()
        categories = [
            {**c, "name": data.name, "updatedAt": now} if c["_id"] == category["_id"] else c
            for c in clinic["categories"]
        ]
        self.repo.replace_arrays(self.db, clinic["_id"], {"categories": categories})
        return {"message": "Category updated successfully"}

    def remove_category(self, clinic_id: str, category_id: str) -> dict:
        clinic = load_clinic(self.db, clinic_id)
        category = require_item(clinic, "categories", category_id, "Category not found")

        in_use = [s for s in clinic.get("services", []) if s.get("categoryId") == category["_id"]]
        if in_use:
            raise conflict(f"Category is used by {len(in_use)} service(s). Move them to another category first.")

        categories = [c for c in clinic["categories"] if c["_id"] != category["_id"]]
        self.repo.replace_arrays(self.db, clinic["_id"], {"categories": categories})
        return {"message": "Category deleted successfully"}

    # ========================================================================
    # SERVICES
    # ========================================================================

    def add_service(self, clinic_id: str, data: ServiceCreate) -> dict:
        """Create a service and add it to each listed doctor's serviceIds"""
        clinic = load_clinic(self.db, clinic_id)
        if not clinic.get("branches"):
            raise conflict("Cannot create a service without an existing branch. Create a branch first.")
        if not clinic.get("doctors"):
            raise conflict("Cannot create a service without an existing doctor. Create a doctor first.")
        if not clinic.get("categories"):
            raise conflict("Cannot create a service without an existing category. Create a category first.")

        plan = clinic.get("plan") or {}
        max_services = (plan.get("limits") or {}).get("maxServices", 0)
        if len(clinic.get("services", [])) >= max_services:
            raise conflict(limit_reached_message("Service", "service(s)", plan.get("type"), max_services))

        category = require_item(clinic, "categories", data.categoryId, "Category not found")
        branch_ids = require_ids(clinic, "branches", data.branchIds, "Branch")
        doctor_ids = require_ids(clinic, "doctors", data.doctorIds, "Doctor")

        now = utcnow()
        service = {
            "_id": ObjectId(),
            "title": data.title,
            "description": data.description,
            "serviceImage": data.serviceImage,
            "categoryId": category["_id"],
            "durationMin": data.durationMin,
            "price": data.price.model_dump(exclude_none=True),
            "branchIds": branch_ids,
            "doctorIds": doctor_ids,
            "isActive": True,
            "createdAt": now,
            "updatedAt": now,
        }
        self.repo.push_item(self.db, clinic, "services", service)
        sync_service_doctors(self.db, clinic["_id"], service["_id"], added=doctor_ids, removed=[])

        logger.info(f"🧾 Service '{data.title}' added to {clinic['clinicUniqueName']}")
        return {"message": "Service created successfully", "service": public_service(service)}

    def update_service(self, clinic_id: str, service_id: str, data: ServiceUpdate) -> dict:
        clinic = load_clinic(self.db, clinic_id)
        existing = require_item(clinic, "services", service_id, "Service not found")

        updates = {}
        for field in ("title", "description", "durationMin"):
            value = getattr(data, field)
            if value is not None:
                updates[field] = value
        if "serviceImage" in data.model_fields_set:
            updates["serviceImage"] = data.serviceImage
        if data.categoryId is not None:
            updates["categoryId"] = require_item(clinic, "categories", data.categoryId, "Category not found")["_id"]
        if data.price is not None:
            updates["price"] = data.price.model_dump(exclude_none=True)
        if data.branchIds is not None:
            updates["branchIds"] = require_ids(clinic, "branches", data.branchIds, "Branch")
        if data.doctorIds is not None:
            updates["doctorIds"] = require_ids(clinic, "doctors", data.doctorIds, "Doctor")

        if not updates:
            return {"message": "No changes"}

        self.repo.update_item(self.db, clinic["_id"], "services", existing["_id"], updates)

        if "doctorIds" in updates:
            added, removed = diff_references(existing.get("doctorIds", []), updates["doctorIds"])
            sync_service_doctors(self.db, clinic["_id"], existing["_id"], added, removed)

        return {"message": "Service updated successfully"}

    def set_service_status(self, clinic_id: str, service_id: str, is_active: bool) -> dict:
        clinic = load_clinic(self.db, clinic_id)
        service = require_item(clinic, "services", service_id, "Service not found")
        self.repo.update_item(self.db, clinic["_id"], "services", service["_id"], {"isActive": is_active})
        return {"message": "Service activated" if is_active else "Service set inactive"}

    def remove_service(self, clinic_id: str, service_id: str) -> dict:
        """Delete a service and strip its id from every doctor that references it"""
        clinic = load_clinic(self.db, clinic_id)
        service = require_item(clinic, "services", service_id, "Service not found")
        sid = service["_id"]

        services = [s for s in clinic["services"] if s["_id"] != sid]
        self.repo.replace_arrays(self.db, clinic["_id"], {"services": services})

        # Doctors pointing at the service even if the service side had drifted
        referencing = [d["_id"] for d in clinic.get("doctors", []) if sid in d.get("serviceIds", [])]
        removed = list(dict.fromkeys([*service.get("doctorIds", []), *referencing]))
        sync_service_doctors(self.db, clinic["_id"], sid, added=[], removed=removed)

        logger.info(f"🗑️ Service {sid} removed from {clinic['clinicUniqueName']}")
        return {"message": "Service deleted successfully"}
