# ============================================================================
# tests/unit/test_stores.py
# ============================================================================
"""
Tests for schedule and document stores
"""

import pytest
from datetime import datetime, timedelta

from rxplain.core.context import DailySlot, MedicationSchedule, ScheduledMedication, TimeOfDay
from rxplain.store import DocumentStore, InMemoryScheduleStore, SqliteScheduleStore


def _schedule(user_id="user-1", created_at=None, is_active=True, name=""):
    created_at = created_at or datetime(2025, 3, 1, 9, 0, 0)
    return MedicationSchedule(
        user_id=user_id,
        daily_schedule=[
            DailySlot(
                TimeOfDay.MORNING, "8:00 AM", with_food=True,
                medications=[ScheduledMedication("Metformin", "500 mg", "With breakfast")],
            ),
        ],
        medications=["Metformin"],
        is_active=is_active,
        name=name,
        created_at=created_at,
        updated_at=created_at,
    )


@pytest.fixture(params=["memory", "sqlite"])
def schedule_store(request, tmp_path):
    if request.param == "memory":
        return InMemoryScheduleStore()
    return SqliteScheduleStore(tmp_path / "schedules.db")


class TestScheduleStore:

    def test_save_assigns_id(self, schedule_store):
        saved = schedule_store.save(_schedule())
        assert saved.id

    def test_round_trip(self, schedule_store):
        saved = schedule_store.save(_schedule())
        loaded = schedule_store.get(saved.id)

        assert loaded.to_dict() == saved.to_dict()
        assert loaded.daily_schedule[0].time_of_day is TimeOfDay.MORNING

    def test_default_name(self, schedule_store):
        saved = schedule_store.save(_schedule())
        assert schedule_store.get(saved.id).name == "Medication Schedule (2025-03-01)"

    def test_get_missing(self, schedule_store):
        assert schedule_store.get("missing") is None

    def test_list_newest_first(self, schedule_store):
        base = datetime(2025, 3, 1)
        older = schedule_store.save(_schedule(created_at=base))
        newer = schedule_store.save(_schedule(created_at=base + timedelta(days=2)))
        schedule_store.save(_schedule(user_id="user-2"))

        listed = schedule_store.list_for_user("user-1")
        assert [s.id for s in listed] == [newer.id, older.id]

    def test_list_active_only(self, schedule_store):
        active = schedule_store.save(_schedule())
        schedule_store.save(_schedule(is_active=False))

        assert [s.id for s in schedule_store.list_for_user("user-1", active_only=True)] == [active.id]

    def test_save_replaces(self, schedule_store):
        saved = schedule_store.save(_schedule())
        saved.name = "Renamed"
        schedule_store.save(saved)

        assert schedule_store.get(saved.id).name == "Renamed"
        assert len(schedule_store.list_for_user("user-1")) == 1

    def test_delete(self, schedule_store):
        saved = schedule_store.save(_schedule())

        assert schedule_store.delete(saved.id) is True
        assert schedule_store.delete(saved.id) is False
        assert schedule_store.get(saved.id) is None

    def test_stored_copy_is_isolated(self, schedule_store):
        saved = schedule_store.save(_schedule())
        saved.daily_schedule.clear()

        assert len(schedule_store.get(saved.id).daily_schedule) == 1


class TestScheduleImmutability:

    def test_id_is_write_once(self):
        schedule = InMemoryScheduleStore().save(_schedule())
        with pytest.raises(AttributeError):
            schedule.id = "other"

    def test_user_id_is_write_once(self):
        schedule = _schedule()
        with pytest.raises(AttributeError):
            schedule.user_id = "someone-else"


class TestDocumentStore:

    def test_list_in_processing_order(self, tmp_path):
        store = DocumentStore(tmp_path / "documents.db")
        store.save("doc-b", "user-1", "second.pdf", [{"name": "Aspirin"}])
        store.save("doc-a", "user-1", "first.pdf", [{"name": "Metformin"}])
        store.save("doc-c", "user-2", "other.pdf", [{"name": "Warfarin"}])

        docs = store.list_for_user("user-1")

        assert [d["document_id"] for d in docs] == ["doc-b", "doc-a"]
        assert docs[0]["medications"] == [{"name": "Aspirin"}]

    def test_resave_keeps_position(self, tmp_path):
        store = DocumentStore(tmp_path / "documents.db")
        store.save("doc-1", "user-1", "one.pdf", [])
        store.save("doc-2", "user-1", "two.pdf", [])
        store.save("doc-1", "user-1", "one.pdf", [{"name": "Aspirin"}])

        docs = store.list_for_user("user-1")
        assert [d["document_id"] for d in docs] == ["doc-1", "doc-2"]
        assert docs[0]["medications"] == [{"name": "Aspirin"}]

    def test_documents_for_user_are_normalized(self, tmp_path, discharge_extraction):
        store = DocumentStore(tmp_path / "documents.db")
        store.save("doc-1", "user-1", "discharge.pdf", discharge_extraction)

        (document,) = store.documents_for_user("user-1")

        assert document.document_name == "discharge.pdf"
        assert document.records[0].names.generic == "Metformin"

    def test_get_and_delete(self, tmp_path):
        store = DocumentStore(tmp_path / "documents.db")
        store.save("doc-1", "user-1", "one.pdf", None)

        assert store.get("doc-1")["medications"] == []
        assert store.delete("doc-1") is True
        assert store.get("doc-1") is None
