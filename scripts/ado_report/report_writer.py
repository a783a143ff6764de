"""CSV serialization of the assembled report."""

from __future__ import annotations

import csv
import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

from scripts.ado_report.models import OutputRow

logger = logging.getLogger("ado_report.report_writer")

FIELDNAMES = ["User Name", "Email", "Project Names", "License Level"]


def report_filename(now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"ado_user_report_{now.strftime('%Y%m%d_%H%M%S')}.csv"


def write_report(
    rows: Iterable[OutputRow],
    output_dir: Path,
    now: Optional[datetime] = None,
) -> Path:
    """Write rows to a timestamped CSV in output_dir and return its path."""
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / report_filename(now)

    count = 0
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=FIELDNAMES)
        writer.writeheader()
        for row in rows:
            writer.writerow(row.to_dict())
            count += 1

    logger.info("Wrote %d rows to %s", count, path, extra={"records": count})
    return path
