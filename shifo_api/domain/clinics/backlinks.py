"""
Service <-> doctor back-reference reconciliation.

A service lists its doctors in ``doctorIds`` and every doctor lists its
services in ``serviceIds``. Both lists live in the same clinic document but
are written by separate updates, so the doctor side is brought in line here
after the service side has been saved.
"""

import logging
import time
from collections.abc import Iterable
from typing import Callable, TypeVar

from bson import ObjectId
from pymongo.database import Database
from pymongo.errors import AutoReconnect

from .repository import ClinicRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")

SYNC_ATTEMPTS = 3
SYNC_BACKOFF_SECONDS = 0.1


def diff_references(old: Iterable[ObjectId], new: Iterable[ObjectId]) -> tuple[list[ObjectId], list[ObjectId]]:
    """Return (added, removed) between two reference lists, preserving order"""
    old_list = list(dict.fromkeys(old))
    new_list = list(dict.fromkeys(new))
    old_set, new_set = set(old_list), set(new_list)
    added = [ref for ref in new_list if ref not in old_set]
    removed = [ref for ref in old_list if ref not in new_set]
    return added, removed


def with_retry(operation: Callable[[], T], attempts: int = SYNC_ATTEMPTS) -> T:
    """Run an idempotent write, retrying on transient connection loss"""
    attempt = 1
    while True:
        try:
            return operation()
        except AutoReconnect as e:
            if attempt >= attempts:
                raise
            logger.warning(f"⚠️ Backlink write failed (attempt {attempt}/{attempts}): {e}")
            time.sleep(SYNC_BACKOFF_SECONDS * attempt)
            attempt += 1


def sync_service_doctors(
    db: Database,
    clinic_id: ObjectId,
    service_id: ObjectId,
    added: Iterable[ObjectId],
    removed: Iterable[ObjectId],
) -> None:
    """Add/remove ``service_id`` on each affected doctor's ``serviceIds``

    Each write is a set union or difference on one doctor, so re-running the
    whole sync after a partial failure converges to the same state.
    """
    added, removed = list(added), list(removed)
    for doctor_id in added:
        with_retry(lambda d=doctor_id: ClinicRepository.add_service_to_doctor(db, clinic_id, d, service_id))
    for doctor_id in removed:
        with_retry(lambda d=doctor_id: ClinicRepository.remove_service_from_doctor(db, clinic_id, d, service_id))

    if added or removed:
        logger.info(
            f"🔗 Service {service_id} backlinks synced: +{len(added)} / -{len(removed)} doctor(s)"
        )
