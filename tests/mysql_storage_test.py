import unittest
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pymysql

from auditor.errors import PersistenceError
from auditor.models import AuditReport, CheckResult
from outcome.mapper import OutcomeMapper
from outcome.mysql_storage import MySQLAuditResultStore, connect


class TestMySQLAuditResultStore(unittest.TestCase):
    def setUp(self):
        self.mock_pool = MagicMock()
        self.store = MySQLAuditResultStore(self.mock_pool)
        self.cursor = self.mock_pool.cursor.return_value.__enter__.return_value
        self.cursor.lastrowid = 41

        report = AuditReport(url="https://example.com/", timestamp=datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc))
        report.record(CheckResult.passed("contentRecency", "Content is recent with sufficient history"))
        report.record(CheckResult.failed("ads", "Limited premium ad networks", {"premium_ad_networks": 1}))
        self.outcome = OutcomeMapper().map(report.freeze())

    def test_apply_writes_in_one_transaction(self):
        """
        Scenario: failed audit with two checks.
        Expected: audit row, two check rows and the approval update inside begin/commit.
        """
        self.store.apply(self.outcome.commands)

        self.mock_pool.begin.assert_called_once()
        self.mock_pool.commit.assert_called_once()
        self.mock_pool.rollback.assert_not_called()
        self.assertEqual(self.cursor.execute.call_count, 4)

        insert_sql, insert_params = self.cursor.execute.call_args_list[0][0]
        self.assertIn("INSERT INTO audit_results", insert_sql)
        self.assertEqual(insert_params[0], "https://example.com/")
        self.assertEqual(insert_params[1], datetime(2026, 3, 1, 12, 0))
        self.assertEqual(insert_params[2], "failed")
        self.assertEqual(insert_params[4], "298")

        upsert_sql, upsert_params = self.cursor.execute.call_args_list[1][0]
        self.assertIn("ON DUPLICATE KEY UPDATE", upsert_sql)
        self.assertEqual(upsert_params[0], 41)
        self.assertEqual(upsert_params[3], "contentRecency")

    def test_site_update_only_touches_pending_rows(self):
        self.store.apply(self.outcome.commands)

        update_sql, params = self.cursor.execute.call_args_list[-1][0]
        self.assertIn("UPDATE sites", update_sql)
        self.assertIn("approval_state = %s", update_sql.split("WHERE")[1])
        self.assertEqual(params, (2, "298", "https://example.com/", 32))

    def test_approved_site_clears_reject_code(self):
        report = AuditReport(url="https://good.example/")
        report.record(CheckResult.passed("ads", "Sufficient premium ad networks detected"))
        outcome = OutcomeMapper().map(report.freeze())

        self.store.apply(outcome.commands)

        _, params = self.cursor.execute.call_args_list[-1][0]
        self.assertEqual(params, (92, None, "https://good.example/", 32))

    def test_rollback_on_database_error(self):
        """
        Scenario: the check upsert fails mid-transaction.
        Expected: rollback, no commit, PersistenceError raised.
        """
        self.cursor.execute.side_effect = [None, pymysql.err.OperationalError(2013, "Lost connection")]

        with self.assertRaises(PersistenceError):
            self.store.apply(self.outcome.commands)

        self.mock_pool.rollback.assert_called_once()
        self.mock_pool.commit.assert_not_called()

    def test_unsupported_command_rolls_back(self):
        with self.assertRaises(PersistenceError):
            self.store.apply(["not a command"])
        self.mock_pool.rollback.assert_called_once()

    def test_failed_rollback_still_raises_persistence_error(self):
        """
        Scenario: the connection drops during commit, so the rollback fails too.
        Expected: PersistenceError from apply and an unsaved summary from the mapper.
        """
        self.mock_pool.commit.side_effect = pymysql.err.OperationalError(2013, "Lost connection to MySQL server during query")
        self.mock_pool.rollback.side_effect = pymysql.err.InterfaceError(0, "")

        with self.assertRaises(PersistenceError):
            self.store.apply(self.outcome.commands)
        self.mock_pool.rollback.assert_called_once()

        summary = OutcomeMapper(store=self.store).store(self.outcome)
        self.assertFalse(summary["success"])
        self.assertIn("Lost connection", summary["error"])

    def test_close_on_dead_connection(self):
        self.mock_pool.close.side_effect = pymysql.err.Error("Already closed")
        self.store.close()
        self.mock_pool.close.assert_called_once()

    def test_statistics(self):
        self.cursor.fetchall.return_value = [(10, 4, 6, 4)]
        self.assertEqual(self.store.statistics(), {
            "total_audits": 10, "unique_sites": 4, "passed_audits": 6, "failed_audits": 4,
        })

    def test_site_history_rows(self):
        self.cursor.fetchall.return_value = [
            ("https://example.com/", datetime(2026, 3, 1, 12, 0), "failed", "Limited premium ad networks", "298"),
        ]
        rows = self.store.site_history("https://example.com/")
        self.assertEqual(rows[0]["timestamp"], "2026-03-01T12:00:00+00:00")
        self.assertEqual(rows[0]["rejection_code"], "298")

    def test_check_results_rejects_bad_timestamp(self):
        with self.assertRaises(PersistenceError):
            self.store.check_results("https://example.com/", "yesterday-ish")

    def test_check_results_decode_details(self):
        self.cursor.fetchall.return_value = [("ads", "fail", "Limited premium ad networks", '{"premium_ad_networks": 1}')]
        rows = self.store.check_results("https://example.com/", "2026-03-01T12:00:00+00:00")
        self.assertEqual(rows[0]["details"], {"premium_ad_networks": 1})
        _, params = self.cursor.execute.call_args[0]
        self.assertEqual(params, ("https://example.com/", datetime(2026, 3, 1, 12, 0)))

    def test_query_errors_wrapped(self):
        self.cursor.execute.side_effect = pymysql.err.ProgrammingError(1146, "Table doesn't exist")
        with self.assertRaises(PersistenceError):
            self.store.latest_results()


class TestConnect(unittest.TestCase):

    @patch("outcome.mysql_storage.pymysql.connect")
    def test_connection_failure_wrapped(self, mock_connect):
        mock_connect.side_effect = pymysql.err.OperationalError(2003, "Can't connect")
        with self.assertRaises(PersistenceError):
            connect({"host": "db.invalid"})


if __name__ == "__main__":
    unittest.main()
