"""Clinic document -> public JSON mapping (credentials are never exposed)"""

from ...shared.documents import id_str, to_iso, to_public


def public_owner(owner: dict) -> dict:
    security = owner.get("security") or {}
    return {
        "_id": id_str(owner["_id"]),
        "role": owner.get("role"),
        "userName": owner.get("userName"),
        "displayName": owner.get("displayName"),
        "addedAt": to_iso(owner.get("addedAt")),
        "isActive": owner.get("isActive", False),
        "lastLoginAt": to_iso(security.get("lastLoginAt")),
    }


def public_branch(branch: dict) -> dict:
    return to_public(branch)


def public_category(category: dict) -> dict:
    return to_public(category)


def public_service(service: dict) -> dict:
    return {
        "_id": id_str(service["_id"]),
        "title": service.get("title"),
        "description": service.get("description", ""),
        "serviceImage": service.get("serviceImage"),
        "categoryId": id_str(service.get("categoryId")),
        "durationMin": service.get("durationMin"),
        "price": service.get("price"),
        "branchIds": [str(i) for i in service.get("branchIds", [])],
        "doctorIds": [str(i) for i in service.get("doctorIds", [])],
        "isActive": service.get("isActive", True),
        "createdAt": to_iso(service.get("createdAt")),
        "updatedAt": to_iso(service.get("updatedAt")),
    }


def public_doctor(doctor: dict) -> dict:
    security = doctor.get("security") or {}
    return {
        "_id": id_str(doctor["_id"]),
        "fullName": doctor.get("fullName"),
        "username": doctor.get("username"),
        "specialty": doctor.get("specialty"),
        "bio": doctor.get("bio", ""),
        "avatarUrl": doctor.get("avatarUrl"),
        "serviceIds": [str(i) for i in doctor.get("serviceIds", [])],
        "branchIds": [str(i) for i in doctor.get("branchIds", [])],
        "isActive": doctor.get("isActive", True),
        "schedule": doctor.get("schedule"),
        "lastLoginAt": to_iso(security.get("lastLoginAt")),
        "createdAt": to_iso(doctor.get("createdAt")),
        "updatedAt": to_iso(doctor.get("updatedAt")),
    }


def public_clinic(doc: dict) -> dict:
    """Summary used in listings"""
    plan = doc.get("plan") or {}
    return {
        "_id": id_str(doc["_id"]),
        "clinicDisplayName": doc.get("clinicDisplayName"),
        "clinicUniqueName": doc.get("clinicUniqueName"),
        "status": doc.get("status"),
        "category": doc.get("category", []),
        "plan": {
            "type": plan.get("type"),
            "startedAt": to_iso(plan.get("startedAt")),
            "expiresAt": to_iso(plan.get("expiresAt")),
            "limits": plan.get("limits"),
        },
        "ranking": to_public(doc.get("ranking")),
        "rating": doc.get("rating"),
        "owners": [public_owner(o) for o in doc.get("owners", [])],
        "stats": to_public(doc.get("stats")),
        "createdAt": to_iso(doc.get("createdAt")),
        "updatedAt": to_iso(doc.get("updatedAt")),
        "deletedAt": to_iso(doc.get("deletedAt")),
    }


def detailed_clinic(doc: dict) -> dict:
    """Full aggregate including every embedded collection"""
    return {
        **public_clinic(doc),
        "branding": doc.get("branding"),
        "contacts": doc.get("contacts"),
        "description": doc.get("description"),
        "branches": [public_branch(b) for b in doc.get("branches", [])],
        "services": [public_service(s) for s in doc.get("services", [])],
        "doctors": [public_doctor(d) for d in doc.get("doctors", [])],
        "categories": [public_category(c) for c in doc.get("categories", [])],
    }
