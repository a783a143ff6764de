"""The report pipeline: users -> memberships -> rows -> CSV."""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from scripts.ado_report.aggregator import MembershipAggregator
from scripts.ado_report.assembler import RecordAssembler
from scripts.ado_report.config import ReportConfig
from scripts.ado_report.enumerator import HierarchicalEnumerator
from scripts.ado_report.http_client import RetryingRequestClient
from scripts.ado_report.models import UserRecord
from scripts.ado_report.pagination import PagedCollectionFetcher
from scripts.ado_report.report_writer import write_report

logger = logging.getLogger("ado_report.job")


@dataclass(frozen=True)
class ReportResult:
    output_path: Path
    users: int
    rows: int
    projects: int
    memberships: int
    failed_branches: int


class UserReportJob:
    """One run of the report. Owns the HTTP client for the run's duration."""

    def __init__(
        self,
        config: ReportConfig,
        client: Optional[RetryingRequestClient] = None,
    ) -> None:
        self.config = config
        ado = config.azure_devops
        self._client = client or RetryingRequestClient(
            token=ado.token,
            max_retries=config.retry.max_retries,
            base_delay=config.retry.base_delay,
            timeout=config.retry.timeout,
        )

    def run(self, now: Optional[datetime] = None) -> ReportResult:
        ado = self.config.azure_devops
        with self._client as client:
            logger.info("Fetching user entitlements", extra={"stage": "users"})
            users = PagedCollectionFetcher(
                client, items_key="members", decode=UserRecord.from_api
            ).fetch_all(ado.entitlements_url, {"api-version": ado.api_version})
            logger.info(
                "Fetched %d user entitlements", len(users),
                extra={"stage": "users", "records": len(users)},
            )

            logger.info("Enumerating project team members", extra={"stage": "memberships"})
            enumerator = HierarchicalEnumerator(client, ado.base_url, ado.api_version)
            pairs = enumerator.enumerate_members()

        index = MembershipAggregator().aggregate(pairs)

        logger.info("Assembling report rows", extra={"stage": "assemble"})
        rows = RecordAssembler().assemble(users, index)

        path = write_report(rows, self.config.output_dir, now)

        for failure in enumerator.failures:
            logger.warning("Incomplete data: %s", failure, extra={"stage": "summary"})

        return ReportResult(
            output_path=path,
            users=len(users),
            rows=len(rows),
            projects=enumerator.project_count,
            memberships=index.membership_count,
            failed_branches=len(enumerator.failures),
        )

    def run_with_tracking(self, now: Optional[datetime] = None) -> ReportResult:
        """Wrap run() with a run id, timing and success/failure logging."""
        run_id = str(uuid.uuid4())
        started = time.monotonic()
        logger.info(
            "Report run started for %s", self.config.azure_devops.organization,
            extra={"run_id": run_id},
        )
        try:
            result = self.run(now)
        except Exception as exc:
            logger.error(
                "Report run failed: %s", exc,
                exc_info=True,
                extra={
                    "run_id": run_id,
                    "duration_s": round(time.monotonic() - started, 2),
                },
            )
            raise

        logger.info(
            "Report complete: %d rows written to %s", result.rows, result.output_path,
            extra={
                "run_id": run_id,
                "records": result.rows,
                "duration_s": round(time.monotonic() - started, 2),
            },
        )
        return result
