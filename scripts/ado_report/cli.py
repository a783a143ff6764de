"""CLI entry point: generate the Azure DevOps user/project report."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Optional, Sequence

from dotenv import load_dotenv

from scripts.ado_report.config import (
    DEFAULT_OUTPUT_DIR,
    load_config,
    validate_max_retries,
    validate_org_url,
)
from scripts.ado_report.errors import ConfigError
from scripts.ado_report.job import UserReportJob
from scripts.ado_report.logging_config import configure_logging

logger = logging.getLogger("ado_report.cli")


def _org_url(value: str) -> str:
    try:
        return validate_org_url(value)
    except ConfigError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from None


def _max_retries(value: str) -> int:
    try:
        return validate_max_retries(int(value))
    except (ValueError, ConfigError) as exc:
        raise argparse.ArgumentTypeError(str(exc)) from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ado-user-report",
        description="Export Azure DevOps users with their projects and license level to CSV",
    )
    parser.add_argument(
        "--org-url", "-o",
        type=_org_url,
        default=os.environ.get("ADO_ORG_URL"),
        required="ADO_ORG_URL" not in os.environ,
        help="Organization URL, e.g. https://dev.azure.com/contoso (env: ADO_ORG_URL)",
    )
    parser.add_argument(
        "--token", "-t",
        default=None,
        help="Personal access token or secret reference (env: ADO_PAT)",
    )
    parser.add_argument(
        "--output-dir", "-d",
        default=None,
        help=f"Directory for the CSV report (default: {DEFAULT_OUTPUT_DIR})",
    )
    parser.add_argument(
        "--log-file", "-l",
        default=None,
        help="Also write JSON log lines to this file",
    )
    parser.add_argument(
        "--max-retries", "-r",
        type=_max_retries,
        default=None,
        help="Attempts per request, 1-10 (default: 3)",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main CLI entry point. Returns the process exit code."""
    load_dotenv()
    args = build_parser().parse_args(argv)
    level = os.environ.get("LOG_LEVEL", "INFO")

    # stderr only until the log file location is known
    configure_logging(level)

    try:
        config = load_config(
            org_url=args.org_url,
            token=args.token,
            output_dir=args.output_dir,
            log_file=args.log_file,
            max_retries=args.max_retries,
        )
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        return 1
    except Exception as exc:
        logger.error("Could not load configuration: %s", exc, exc_info=True)
        return 1

    if config.log_file is not None:
        configure_logging(level, log_file=config.log_file)

    try:
        result = UserReportJob(config).run_with_tracking()
    except Exception as exc:
        # run_with_tracking has already logged the traceback
        logger.error("Report generation failed: %s", exc)
        return 1

    logger.info(
        "Exported %d users (%d projects, %d memberships, %d failed branches) to %s",
        result.rows, result.projects, result.memberships,
        result.failed_branches, result.output_path,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
