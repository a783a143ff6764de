"""Join entitlement users with their project memberships into report rows."""

from __future__ import annotations

import logging
from typing import Iterable, Mapping, Sequence

from scripts.ado_report.models import OutputRow, UserRecord

logger = logging.getLogger("ado_report.assembler")

NO_EMAIL = "no email available"
UNKNOWN_LICENSE = "unknown license"
NO_PROJECTS = "No project assignments"
PROJECT_SEPARATOR = "; "


def placeholder_name(user_id: str) -> str:
    return f"Unknown User ({user_id})"


class RecordAssembler:
    def __init__(self) -> None:
        self.skipped_users = 0

    def assemble(
        self,
        users: Iterable[UserRecord],
        index: Mapping[str, Sequence[str]],
    ) -> list[OutputRow]:
        """One row per user with an id, in input order."""
        rows: list[OutputRow] = []
        for user in users:
            if not user.id:
                self.skipped_users += 1
                logger.warning(
                    "Skipping entitlement without a user id (%s)",
                    user.principal_name or user.display_name or "no name",
                )
                continue
            rows.append(self.build_row(user, index.get(user.id)))

        logger.info(
            "Assembled %d report rows (%d users skipped)",
            len(rows), self.skipped_users,
            extra={"records": len(rows)},
        )
        return rows

    @staticmethod
    def build_row(user: UserRecord, projects: Sequence[str] | None) -> OutputRow:
        return OutputRow(
            user_name=user.display_name or user.principal_name or placeholder_name(user.id),
            email=user.mail_address or NO_EMAIL,
            project_names=PROJECT_SEPARATOR.join(projects) if projects else NO_PROJECTS,
            license_level=user.license_name or UNKNOWN_LICENSE,
        )
