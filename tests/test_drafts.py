"""Unit tests for draft persistence."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
import json
from pathlib import Path
import tempfile
import unittest

from intake.forms.drafts import FileDraftStore, MemoryDraftStore
from intake.forms.flows import NEW_PATIENT_FLOW
from intake.forms.wizard import Wizard


class FakeClock:
    """Manually advanced clock."""

    def __init__(self) -> None:
        self.now = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now


DRAFT = {
    "answers": {"appointmentType": "new", "firstName": "Ada", "concerns": ["Bipolar Mood Disorder"]},
    "currentStep": 4,
    "otpSent": True,
}


class MemoryDraftStoreTestCase(unittest.TestCase):
    """Validate the in-process draft store."""

    def test_save_then_load_reproduces_draft(self) -> None:
        store = MemoryDraftStore()
        store.save("new-patient-flow", DRAFT)
        loaded = store.load("new-patient-flow")
        self.assertEqual(loaded["answers"], DRAFT["answers"])
        self.assertEqual(loaded["currentStep"], 4)
        self.assertTrue(loaded["otpSent"])
        self.assertIn("savedAt", loaded)

    def test_loaded_draft_is_a_copy(self) -> None:
        store = MemoryDraftStore()
        store.save("k", DRAFT)
        store.load("k")["answers"]["firstName"] = "Changed"
        self.assertEqual(store.load("k")["answers"]["firstName"], "Ada")

    def test_clear_removes_draft(self) -> None:
        store = MemoryDraftStore()
        store.save("k", DRAFT)
        store.clear("k")
        self.assertIsNone(store.load("k"))
        self.assertNotIn("k", store)
        store.clear("k")

    def test_retention_expires_old_drafts(self) -> None:
        clock = FakeClock()
        store = MemoryDraftStore(retention=timedelta(days=30), clock=clock)
        store.save("k", DRAFT)
        clock.now += timedelta(days=29)
        self.assertIsNotNone(store.load("k"))
        clock.now += timedelta(days=2)
        self.assertIsNone(store.load("k"))
        self.assertNotIn("k", store)

    def test_unbounded_retention(self) -> None:
        clock = FakeClock()
        store = MemoryDraftStore(retention=None, clock=clock)
        store.save("k", DRAFT)
        clock.now += timedelta(days=3650)
        self.assertIsNotNone(store.load("k"))


class FileDraftStoreTestCase(unittest.TestCase):
    """Validate the JSON file draft store."""

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.directory = Path(self._tmp.name)
        self.clock = FakeClock()
        self.store = FileDraftStore(self.directory, clock=self.clock)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_round_trip_through_disk(self) -> None:
        self.store.save("intake-form-flow", DRAFT)
        reopened = FileDraftStore(self.directory, clock=self.clock)
        loaded = reopened.load("intake-form-flow")
        self.assertEqual(loaded["answers"], DRAFT["answers"])
        self.assertEqual(loaded["currentStep"], 4)

    def test_keys_are_isolated(self) -> None:
        self.store.save("new-patient-flow", DRAFT)
        self.assertIsNone(self.store.load("existing-patient-flow"))

    def test_corrupt_json_loads_as_absent(self) -> None:
        self.store.path_for("k").write_text("{not json", encoding="utf-8")
        with self.assertLogs("intake.forms.drafts", level="WARNING"):
            self.assertIsNone(self.store.load("k"))

        self.store.path_for("k").write_bytes(b"\xff\xfe{garbage")
        with self.assertLogs("intake.forms.drafts", level="WARNING"):
            self.assertIsNone(self.store.load("k"))

    def test_resume_from_undecodable_draft_starts_fresh(self) -> None:
        self.store.path_for(NEW_PATIENT_FLOW.key).write_bytes(b"\x80\x81\x82")
        with self.assertLogs("intake.forms.drafts", level="WARNING"):
            wizard = Wizard.resume(NEW_PATIENT_FLOW, self.store)
        self.assertEqual(wizard.current_step, 1)
        self.assertEqual(wizard.answers["firstName"], "")

    def test_wrong_shape_loads_as_absent(self) -> None:
        for document in ([1, 2], {"answers": [], "currentStep": 1}, {"answers": {}, "currentStep": "2"}):
            self.store.path_for("k").write_text(json.dumps(document), encoding="utf-8")
            with self.assertLogs("intake.forms.drafts", level="WARNING"):
                self.assertIsNone(self.store.load("k"))

    def test_expired_draft_file_is_removed(self) -> None:
        self.store.save("k", DRAFT)
        self.clock.now += timedelta(days=31)
        self.assertIsNone(self.store.load("k"))
        self.assertFalse(self.store.path_for("k").exists())

    def test_clear_is_idempotent(self) -> None:
        self.store.save("k", DRAFT)
        self.store.clear("k")
        self.store.clear("k")
        self.assertIsNone(self.store.load("k"))

    def test_unsafe_keys_stay_inside_directory(self) -> None:
        path = self.store.path_for("../escape")
        self.assertEqual(path.parent, self.directory)
        with self.assertRaises(ValueError):
            self.store.path_for("")


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
