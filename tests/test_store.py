import os
import unittest
from datetime import timedelta

from event_checkin_api.app.core.db import MIGRATIONS, Database
from event_checkin_api.app.core.exceptions import DuplicateKeyError
from event_checkin_api.app.core.store import AttendeeStore
from event_checkin_api.app.schemas.student import StudentRole
from event_checkin_api.app.schemas.validation import ScanMethod, ValidationScan

from .support import T0, TempDirMixin, open_store, student_record


class TestAttendeeStore(TempDirMixin, unittest.TestCase):
    def setUp(self):
        self.tmpdir = self.make_tempdir()
        self.store = open_store(self.tmpdir)
        self.addCleanup(self.store.db.close)

    def add(self, student_id, email, minutes=0, **overrides):
        return self.store.insert(
            student_record(student_id, email, registered_at=T0 + timedelta(minutes=minutes), **overrides)
        )

    def test_insert_and_find(self):
        stored = self.add("FEST-1-001", "a@x.com")
        self.assertIsNotNone(stored.pk)
        self.assertFalse(stored.validated)
        self.assertIsNone(stored.validated_at)

        by_id = self.store.find_by_id("FEST-1-001")
        by_email = self.store.find_by_email("a@x.com")
        self.assertEqual(by_id, stored)
        self.assertEqual(by_email, stored)
        self.assertEqual(by_id.registered_at, T0)
        self.assertEqual(by_id.role, StudentRole.PARTICIPANT)

    def test_missing_lookups_return_none(self):
        self.assertIsNone(self.store.find_by_id("FEST-404-000"))
        self.assertIsNone(self.store.find_by_email("nobody@x.com"))

    def test_duplicate_email_rejected(self):
        self.add("FEST-1-001", "a@x.com")
        with self.assertRaises(DuplicateKeyError) as ctx:
            self.add("FEST-1-002", "a@x.com")
        self.assertEqual(ctx.exception.field, "email")
        self.assertEqual(len(self.store.list_all()), 1)

    def test_email_uniqueness_is_case_sensitive(self):
        self.add("FEST-1-001", "a@x.com")
        self.add("FEST-1-002", "A@x.com")
        self.assertEqual(len(self.store.list_all()), 2)

    def test_duplicate_id_rejected(self):
        self.add("FEST-1-001", "a@x.com")
        with self.assertRaises(DuplicateKeyError) as ctx:
            self.add("FEST-1-001", "b@x.com")
        self.assertEqual(ctx.exception.field, "id")

    def test_update_validation_is_compare_and_set(self):
        self.add("FEST-1-001", "a@x.com")
        first = self.store.update_validation("FEST-1-001", T0 + timedelta(hours=1))
        self.assertTrue(first.validated)
        self.assertEqual(first.validated_at, T0 + timedelta(hours=1))

        second = self.store.update_validation("FEST-1-001", T0 + timedelta(hours=2))
        self.assertIsNone(second)
        self.assertEqual(self.store.find_by_id("FEST-1-001").validated_at, T0 + timedelta(hours=1))

    def test_update_validation_unknown_id(self):
        self.assertIsNone(self.store.update_validation("FEST-404-000", T0))

    def test_list_all_newest_first(self):
        self.add("FEST-1-001", "a@x.com", minutes=0)
        self.add("FEST-1-002", "b@x.com", minutes=10)
        self.add("FEST-1-003", "c@x.com", minutes=5)
        self.assertEqual(
            [s.id for s in self.store.list_all()],
            ["FEST-1-002", "FEST-1-003", "FEST-1-001"],
        )

    def test_search_matches_any_field_case_insensitively(self):
        self.add("FEST-1-001", "ann@x.com", name="Ann Lee", college="MIT")
        self.add("FEST-1-002", "bob@y.org", name="Bob Stone", college="Stanford", minutes=1)

        self.assertEqual([s.id for s in self.store.search("ann lee")], ["FEST-1-001"])
        self.assertEqual([s.id for s in self.store.search("STANF")], ["FEST-1-002"])
        self.assertEqual([s.id for s in self.store.search("y.ORG")], ["FEST-1-002"])
        self.assertEqual([s.id for s in self.store.search("fest-1-00")], ["FEST-1-002", "FEST-1-001"])
        self.assertEqual(self.store.search("nobody"), [])

    def test_search_folds_case_beyond_ascii(self):
        self.add("FEST-1-001", "emile@x.com", name="Émile Zoë", college="École Polytechnique")
        self.add("FEST-1-002", "jorg@x.com", name="JÖRG STRASSE", college="TU München", minutes=1)

        self.assertEqual([s.id for s in self.store.search("émile")], ["FEST-1-001"])
        self.assertEqual([s.id for s in self.store.search("ÉMILE")], ["FEST-1-001"])
        self.assertEqual([s.id for s in self.store.search("école")], ["FEST-1-001"])
        self.assertEqual([s.id for s in self.store.search("zoË")], ["FEST-1-001"])
        self.assertEqual([s.id for s in self.store.search("jörg")], ["FEST-1-002"])
        self.assertEqual([s.id for s in self.store.search("straße")], ["FEST-1-002"])
        self.assertEqual([s.id for s in self.store.search("MÜNCHEN")], ["FEST-1-002"])

    def test_search_treats_wildcards_literally(self):
        self.add("FEST-1-001", "a@x.com", name="100% Ann")
        self.add("FEST-1-002", "b@x.com", name="Bob_Stone")
        self.add("FEST-1-003", "c@x.com", name="Carl")
        self.assertEqual([s.id for s in self.store.search("%")], ["FEST-1-001"])
        self.assertEqual([s.id for s in self.store.search("_")], ["FEST-1-002"])

    def test_search_with_role_filter(self):
        self.add("FEST-1-001", "a@x.com", role=StudentRole.JUDGE)
        self.add("FEST-1-002", "b@x.com", role=StudentRole.VOLUNTEER)
        self.assertEqual([s.id for s in self.store.search("", "judge")], ["FEST-1-001"])
        self.assertEqual(self.store.search("FEST-1-002", "judge"), [])

    def test_append_and_recent_scans(self):
        self.add("FEST-1-001", "a@x.com")
        self.add("FEST-1-002", "b@x.com")
        self.store.append_scan(ValidationScan(student_id="FEST-1-001", scanned_at=T0, method=ScanMethod.QR))
        self.store.append_scan(
            ValidationScan(
                student_id="FEST-1-002",
                scanned_at=T0 + timedelta(minutes=1),
                method=ScanMethod.MANUAL,
                scanned_by="desk-2",
            )
        )

        scans = self.store.recent_scans(10)
        self.assertEqual([s.student_id for s in scans], ["FEST-1-002", "FEST-1-001"])
        self.assertEqual(scans[0].student.email, "b@x.com")
        self.assertEqual(scans[0].scanned_by, "desk-2")
        self.assertEqual(scans[1].method, ScanMethod.QR)
        self.assertEqual([s.student_id for s in self.store.recent_scans(1)], ["FEST-1-002"])

    def test_recent_scans_skip_unknown_students(self):
        self.add("FEST-1-001", "a@x.com")
        self.store.append_scan(ValidationScan(student_id="FEST-1-001", scanned_at=T0, method=ScanMethod.QR))
        self.store.append_scan(
            ValidationScan(student_id="FEST-GONE-000", scanned_at=T0 + timedelta(minutes=1), method=ScanMethod.QR)
        )
        self.assertEqual([s.student_id for s in self.store.recent_scans(10)], ["FEST-1-001"])
        self.assertEqual(self.store.count_scans(), 2)

    def test_aggregates(self):
        self.add("FEST-1-001", "a@x.com", college="MIT")
        self.add("FEST-1-002", "b@x.com", college="MIT", role=StudentRole.JUDGE)
        self.add("FEST-1-003", "c@x.com", college="CMU", minutes=-60 * 30)
        self.store.update_validation("FEST-1-002", T0)

        self.assertEqual(self.store.count_by_validation(), (3, 1))
        roles = {row["role"]: row for row in self.store.role_breakdown()}
        self.assertEqual(roles["participant"]["total"], 2)
        self.assertEqual(roles["participant"]["validated"], 0)
        self.assertEqual(roles["judge"]["validated"], 1)
        self.assertEqual(
            self.store.college_counts(5),
            [{"college": "MIT", "count": 2}, {"college": "CMU", "count": 1}],
        )
        self.assertEqual(self.store.count_registered_since(T0 - timedelta(hours=24)), 2)

    def test_transaction_rolls_back_all_writes(self):
        self.add("FEST-1-001", "a@x.com")
        with self.assertRaises(RuntimeError):
            with self.store.transaction():
                self.store.update_validation("FEST-1-001", T0)
                self.store.append_scan(
                    ValidationScan(student_id="FEST-1-001", scanned_at=T0, method=ScanMethod.MANUAL)
                )
                raise RuntimeError("boom")
        self.assertFalse(self.store.find_by_id("FEST-1-001").validated)
        self.assertEqual(self.store.count_scans(), 0)


class TestDatabaseLifecycle(TempDirMixin, unittest.TestCase):
    def test_reopen_keeps_data_and_migrations(self):
        path = os.path.join(self.make_tempdir(), "nested", "checkin.db")
        db = Database(path)
        db.open()
        AttendeeStore(db).insert(student_record("FEST-1-001", "a@x.com"))
        db.close()
        self.assertFalse(db.is_open)

        db.open()
        self.addCleanup(db.close)
        versions = [row["version"] for row in db.fetchall("SELECT version FROM migrations ORDER BY version")]
        self.assertEqual(versions, [version for version, _ in MIGRATIONS])
        self.assertIsNotNone(AttendeeStore(db).find_by_id("FEST-1-001"))

    def test_closed_database_raises(self):
        db = Database(os.path.join(self.make_tempdir(), "checkin.db"))
        with self.assertRaises(RuntimeError):
            db.ping()


if __name__ == "__main__":
    unittest.main()
