import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

import pymysql
from dateutil import parser as dateparser

from auditor.core import DB_CONFIG
from auditor.errors import PersistenceError
from outcome.models import InsertAuditResult, UpdateSiteApproval, UpsertCheckResult
from outcome.storage import AuditResultStore

logger = logging.getLogger("auditor.outcome")
_LOG = {"context": "MySQLAuditResultStore"}


def connect(config: Optional[Dict[str, Any]] = None):
    """Open a PyMySQL connection from DB_CONFIG (or overrides)."""
    params = dict(DB_CONFIG)
    params.update(config or {})
    try:
        return pymysql.connect(autocommit=False, **params)
    except pymysql.MySQLError as e:
        raise PersistenceError(f"Cannot connect to MySQL at {params.get('host')}: {e}") from e


def _db_time(value) -> datetime:
    """Naive UTC for DATETIME(6) columns. Accepts datetimes or ISO strings."""
    if isinstance(value, str):
        value = dateparser.isoparse(value)
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _iso(value) -> Optional[str]:
    if value is None:
        return None
    return value.replace(tzinfo=timezone.utc).isoformat()


def _json(value) -> Optional[str]:
    return None if value is None else json.dumps(value, default=str)


class MySQLAuditResultStore(AuditResultStore):
    """
    MySQL implementation of AuditResultStore.
    One apply() call is one transaction: all commands land or none do.
    """

    def __init__(self, connection):
        self._pool = connection

    def apply(self, commands: Sequence) -> None:
        audit_ids = {}
        with self._pool.cursor() as cursor:
            try:
                self._pool.begin()
                for command in commands:
                    if isinstance(command, InsertAuditResult):
                        audit_ids[(command.url, command.timestamp)] = self._insert_audit(cursor, command)
                    elif isinstance(command, UpsertCheckResult):
                        self._upsert_check(cursor, command, audit_ids.get((command.url, command.timestamp)))
                    elif isinstance(command, UpdateSiteApproval):
                        self._update_site(cursor, command)
                    else:
                        raise PersistenceError(f"Unsupported command: {type(command).__name__}")
                self._pool.commit()
            except pymysql.MySQLError as e:
                self._rollback()
                raise PersistenceError(f"Failed to apply {len(commands)} command(s): {e}") from e
            except Exception:
                self._rollback()
                raise

    def _rollback(self) -> None:
        # A dead connection cannot roll back; the server discards the open transaction.
        try:
            self._pool.rollback()
        except pymysql.MySQLError as e:
            logger.warning(f"[DB] Rollback failed: {e}", extra=_LOG)

    def _insert_audit(self, cursor, cmd: InsertAuditResult) -> int:
        sql = """
            INSERT INTO audit_results (url, timestamp, status, failure_reason, rejection_code, full_result)
            VALUES (%s, %s, %s, %s, %s, %s)
        """
        cursor.execute(sql, (
            cmd.url, _db_time(cmd.timestamp), cmd.status.value,
            cmd.failure_reason, cmd.rejection_code or None, _json(cmd.full_result),
        ))
        return cursor.lastrowid

    def _upsert_check(self, cursor, cmd: UpsertCheckResult, audit_id: Optional[int]) -> None:
        sql = """
            INSERT INTO audit_check_results (audit_id, url, timestamp, check_name, status, reason, details)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            ON DUPLICATE KEY UPDATE status = VALUES(status), reason = VALUES(reason), details = VALUES(details)
        """
        cursor.execute(sql, (
            audit_id, cmd.url, _db_time(cmd.timestamp), cmd.check_name,
            cmd.status, cmd.reason, _json(cmd.details),
        ))

    def _update_site(self, cursor, cmd: UpdateSiteApproval) -> None:
        # INVARIANT: Only sites still awaiting review are transitioned.
        sql = """
            UPDATE sites
            SET approval_state = %s, reject_reason_code = %s, approval_state_updated = NOW()
            WHERE site = %s AND approval_state = %s
        """
        affected = cursor.execute(sql, (
            cmd.to_state, None if cmd.approved else cmd.rejection_code, cmd.url, cmd.from_state,
        ))
        if not affected:
            logger.info(f"[DB] No pending site row for {cmd.url}; approval state unchanged", extra=_LOG)

    def close(self) -> None:
        try:
            self._pool.close()
        except pymysql.MySQLError as e:
            logger.warning(f"[DB] Closing connection failed: {e}", extra=_LOG)

    # === READ SIDE ===

    _RESULT_COLUMNS = "r.url, r.timestamp, r.status, r.failure_reason, r.rejection_code"

    def _query(self, sql: str, params: tuple = ()) -> list:
        try:
            with self._pool.cursor() as cursor:
                cursor.execute(sql, params)
                return list(cursor.fetchall())
        except pymysql.MySQLError as e:
            raise PersistenceError(f"Query failed: {e}") from e

    @staticmethod
    def _result_row(row) -> Dict[str, Any]:
        return {
            "url": row[0],
            "timestamp": _iso(row[1]),
            "status": row[2],
            "failure_reason": row[3],
            "rejection_code": row[4],
        }

    def latest_results(self, limit: int = 100) -> List[Dict[str, Any]]:
        sql = f"""
            SELECT {self._RESULT_COLUMNS}
            FROM audit_results r
            JOIN (SELECT url, MAX(timestamp) AS ts FROM audit_results GROUP BY url) latest
              ON latest.url = r.url AND latest.ts = r.timestamp
            ORDER BY r.timestamp DESC
            LIMIT %s
        """
        return [self._result_row(row) for row in self._query(sql, (int(limit),))]

    def site_history(self, url: str) -> List[Dict[str, Any]]:
        sql = f"""
            SELECT {self._RESULT_COLUMNS}
            FROM audit_results r
            WHERE r.url = %s
            ORDER BY r.timestamp DESC
        """
        return [self._result_row(row) for row in self._query(sql, (url,))]

    def check_results(self, url: str, timestamp: str) -> List[Dict[str, Any]]:
        sql = """
            SELECT check_name, status, reason, details
            FROM audit_check_results
            WHERE url = %s AND timestamp = %s
            ORDER BY id
        """
        try:
            moment = _db_time(timestamp)
        except (ValueError, OverflowError) as e:
            raise PersistenceError(f"Invalid timestamp {timestamp!r}: {e}") from e
        return [
            {
                "name": row[0],
                "status": row[1],
                "reason": row[2],
                "details": json.loads(row[3]) if row[3] else None,
            }
            for row in self._query(sql, (url, moment))
        ]

    def statistics(self) -> Dict[str, Any]:
        sql = """
            SELECT COUNT(*), COUNT(DISTINCT url),
                   COALESCE(SUM(status = 'passed'), 0), COALESCE(SUM(status = 'failed'), 0)
            FROM audit_results
        """
        row = self._query(sql)[0]
        return {
            "total_audits": int(row[0]),
            "unique_sites": int(row[1]),
            "passed_audits": int(row[2]),
            "failed_audits": int(row[3]),
        }
