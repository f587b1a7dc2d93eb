import pytest
from bson import ObjectId
from pymongo.errors import AutoReconnect

from shifo_api.domain.clinics import backlinks
from shifo_api.domain.clinics.backlinks import diff_references, sync_service_doctors, with_retry

A, B, C = ObjectId(), ObjectId(), ObjectId()


@pytest.mark.parametrize(
    "old, new, added, removed",
    [
        ([], [A, B], [A, B], []),
        ([A, B], [], [], [A, B]),
        ([A, B], [B, C], [C], [A]),
        ([A, B], [B, A], [], []),
        ([A, A, B], [B, C, C], [C], [A]),
    ],
)
def test_diff_references(old, new, added, removed):
    assert diff_references(old, new) == (added, removed)


def test_with_retry_recovers_from_transient_errors(monkeypatch):
    monkeypatch.setattr(backlinks.time, "sleep", lambda seconds: None)
    calls = []

    def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise AutoReconnect("connection reset")
        return "done"

    assert with_retry(flaky) == "done"
    assert len(calls) == 3


def test_with_retry_gives_up(monkeypatch):
    monkeypatch.setattr(backlinks.time, "sleep", lambda seconds: None)

    def broken():
        raise AutoReconnect("down")

    with pytest.raises(AutoReconnect):
        with_retry(broken, attempts=2)


def test_sync_is_idempotent(db):
    clinic_id, service_id = ObjectId(), ObjectId()
    db["clinics"].insert_one(
        {"_id": clinic_id, "doctors": [{"_id": A, "serviceIds": []}, {"_id": B, "serviceIds": [service_id]}]}
    )

    sync_service_doctors(db, clinic_id, service_id, added=[A], removed=[B])
    sync_service_doctors(db, clinic_id, service_id, added=[A], removed=[B])

    doctors = {d["_id"]: d["serviceIds"] for d in db["clinics"].find_one({"_id": clinic_id})["doctors"]}
    assert doctors == {A: [service_id], B: []}
