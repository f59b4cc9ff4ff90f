"""Main CLI entry point."""

import argparse
import json
import logging
from pathlib import Path
from typing import Optional, Sequence

from dotenv import find_dotenv, load_dotenv

from case_triage.errors import SetupError
from case_triage.reporting import ConsoleReporter, TqdmLoggingHandler

logger = logging.getLogger(__name__)


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Parse args and dispatch to subcommands."""
    parser = argparse.ArgumentParser(prog="case-triage", description="Salesforce case triage via routing agent")
    subparsers = parser.add_subparsers(dest="command", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config YAML (default: $CASE_TRIAGE_CONFIG, else environment only)",
    )
    common.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log request payloads and responses",
    )

    # run
    run_parser = subparsers.add_parser("run", parents=[common], help="Classify and update a batch of cases")
    run_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Classify cases but skip the Salesforce update",
    )

    # query
    query_parser = subparsers.add_parser("query", parents=[common], help="Show the batch the query would process")
    query_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write batch JSON to file (default: stdout)",
    )

    args = parser.parse_args(argv)

    load_dotenv(find_dotenv(usecwd=True))
    _configure_logging(args.verbose)

    if args.command == "run":
        _run_triage(args)
    elif args.command == "query":
        _run_query(args)
    else:
        parser.print_help()


def _configure_logging(verbose: bool) -> None:
    handler = TqdmLoggingHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    root = logging.getLogger()
    if not any(isinstance(h, TqdmLoggingHandler) for h in root.handlers):
        root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def _load_config(args: argparse.Namespace):
    from case_triage.config import load_config

    try:
        return load_config(args.config)
    except SetupError as e:
        logger.error("✖ ERROR: %s", e.message)
        if e.details:
            logger.debug(e.details)
        raise SystemExit(1)


def _run_triage(args: argparse.Namespace) -> None:
    """Run command. Exits 1 only when a setup stage fails."""
    from case_triage.pipeline import run_triage

    config = _load_config(args)
    logger.info("--- Starting Salesforce Case Triage Process ---")
    reporter = ConsoleReporter(step_delay=config.step_delay)
    try:
        run_triage(config, reporter=reporter, dry_run=args.dry_run)
    except SetupError:
        logger.error("--- Process Aborted Due to Critical Error ---")
        raise SystemExit(1)


def _run_query(args: argparse.Namespace) -> None:
    """Query command: auth + query only, no cases are touched."""
    from case_triage.crm.client import SalesforceClient
    from case_triage.pipeline import fetch_cases

    config = _load_config(args)
    crm = SalesforceClient(config)
    try:
        _, batch = fetch_cases(config, crm, ConsoleReporter())
    except SetupError:
        logger.error("--- Query Aborted ---")
        raise SystemExit(1)
    finally:
        crm.close()

    output = json.dumps(
        {
            "total_matching": batch.total_matching,
            "records": [r.model_dump(mode="json", by_alias=True) for r in batch.records],
        },
        indent=2,
        default=str,
    )
    if args.output:
        args.output.write_text(output, encoding="utf-8")
        logger.info("Wrote %d case(s) to %s", len(batch.records), args.output)
    else:
        print(output)


if __name__ == "__main__":
    main()
