"""
Flask HTTP surface for the publisher auditor.
POST /audit/url runs one audit; /history/* reads stored results.
"""

import asyncio
import logging

from flask import Flask, jsonify, request

from auditor import build_orchestrator
from auditor.errors import InvalidURLError, PersistenceError
from outcome.mapper import OutcomeMapper
from outcome.mysql_storage import MySQLAuditResultStore, connect

logger = logging.getLogger("auditor.app")
_LOG = {"context": "FlaskApp"}

app = Flask(__name__)


def _open_store():
    """One connection per request. Returns None when the database is unreachable."""
    try:
        return MySQLAuditResultStore(connect())
    except PersistenceError as e:
        logger.error(f"[DB] {e}", extra=_LOG)
        return None


def _close(store):
    if store is not None:
        store.close()


# ============================================================
# AUDIT
# ============================================================

@app.route('/audit/url', methods=['POST'])
def audit_url():
    payload = request.get_json(silent=True) or {}
    url = payload.get('url')
    if not url:
        return jsonify({"error": "Missing 'url' in request body"}), 400

    orchestrator = build_orchestrator()
    try:
        report = asyncio.run(orchestrator.audit_url(url))
    except InvalidURLError as e:
        return jsonify({"error": str(e)}), 400

    store = _open_store()
    try:
        mapper = OutcomeMapper(store=store)
        outcome = mapper.map(report)
        if store is None:
            storage = {"success": False, "error": "Database connection failed"}
        else:
            storage = mapper.store(outcome)
    finally:
        _close(store)

    return jsonify(outcome.to_response(storage))


@app.route('/health')
def health():
    return jsonify({"status": "ok"})


# ============================================================
# HISTORY
# ============================================================

def _with_store(reader):
    store = _open_store()
    if store is None:
        return jsonify({"error": "Database connection failed"}), 500
    try:
        return jsonify(reader(store))
    except PersistenceError as e:
        return jsonify({"error": str(e)}), 500
    finally:
        _close(store)


@app.route('/history/latest')
def history_latest():
    limit = request.args.get('limit', default=100, type=int)
    return _with_store(lambda store: store.latest_results(limit))


@app.route('/history/site')
def history_site():
    url = request.args.get('url')
    if not url:
        return jsonify({"error": "Missing 'url' query parameter"}), 400
    return _with_store(lambda store: store.site_history(url))


@app.route('/history/checks')
def history_checks():
    url = request.args.get('url')
    timestamp = request.args.get('timestamp')
    if not url or not timestamp:
        return jsonify({"error": "Both 'url' and 'timestamp' query parameters are required"}), 400
    return _with_store(lambda store: store.check_results(url, timestamp))


@app.route('/history/stats')
def history_stats():
    return _with_store(lambda store: store.statistics())


if __name__ == '__main__':
    app.run(host='0.0.0.0', port=5000, debug=False)
