import argparse
import asyncio
import json
import sys

from auditor import build_orchestrator
from auditor.core import logger, setup_logger
from auditor.errors import InvalidURLError, PersistenceError
from outcome.mapper import OutcomeMapper
from outcome.mysql_storage import MySQLAuditResultStore, connect

EXIT_OK = 0
EXIT_INVALID_URL = 2


async def run_audits(urls, store=None):
    """
    Audit each URL in turn and print its report as JSON.
    Returns EXIT_INVALID_URL if any URL was rejected before auditing.
    """
    orchestrator = build_orchestrator()
    mapper = OutcomeMapper(store=store)
    exit_code = EXIT_OK

    for url in urls:
        try:
            report = await orchestrator.audit_url(url)
        except InvalidURLError as e:
            logger.error(f"[CLI] {e}", extra={'context': 'CLI'})
            print(json.dumps({"url": url, "error": str(e)}))
            exit_code = EXIT_INVALID_URL
            continue

        outcome = mapper.map(report)
        storage = mapper.store(outcome) if store is not None else None
        print(json.dumps(outcome.to_response(storage), indent=2, default=str))

    return exit_code


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Publisher URL Auditor CLI")
    parser.add_argument("urls", nargs="+", metavar="URL", help="URL(s) to audit")
    parser.add_argument("--no-store", action="store_true", help="Do not write results to MySQL")
    parser.add_argument("--log-file", default=None, help="Also write logs to this file")
    args = parser.parse_args()

    if args.log_file:
        setup_logger("auditor", log_file=args.log_file)

    store = None
    if not args.no_store:
        try:
            store = MySQLAuditResultStore(connect())
        except PersistenceError as e:
            logger.error(f"[CLI] {e}; continuing without storage", extra={'context': 'CLI'})

    try:
        code = asyncio.run(run_audits(args.urls, store))
    finally:
        if store is not None:
            store.close()
    sys.exit(code)
