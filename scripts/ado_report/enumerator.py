"""Project -> team -> member fan-out with per-branch failure isolation."""

from __future__ import annotations

import logging
from typing import Any, Optional

from scripts.ado_report.errors import PartialEnumerationError, RequestFailed
from scripts.ado_report.http_client import RetryingRequestClient
from scripts.ado_report.models import MemberRef, Project, Team

logger = logging.getLogger("ado_report.enumerator")


def _value_list(payload: Any) -> list[dict]:
    if isinstance(payload, dict):
        payload = payload.get("value")
    if not isinstance(payload, list):
        return []
    return [item for item in payload if isinstance(item, dict)]


class HierarchicalEnumerator:
    """Walk every project, its teams and their members, strictly in order.

    A failing project listing is fatal. A failing teams or members call only
    loses that branch: it is logged, recorded in ``failures`` and treated as
    empty.
    """

    def __init__(
        self,
        client: RetryingRequestClient,
        org_url: str,
        api_version: str = "7.0",
    ) -> None:
        self._client = client
        self._base = org_url.rstrip("/")
        self._params = {"api-version": api_version}
        self.failures: list[PartialEnumerationError] = []
        self.project_count = 0
        self.team_count = 0

    def enumerate_members(self) -> list[tuple[Project, MemberRef]]:
        pairs: list[tuple[Project, MemberRef]] = []
        projects = self.list_projects()
        logger.info("Found %d projects", len(projects), extra={"records": len(projects)})

        for project in projects:
            teams = self._teams_for(project)
            self.team_count += len(teams)
            for team in teams:
                for member in self._members_for(project, team):
                    pairs.append((project, member))

        logger.info(
            "Enumerated %d memberships across %d projects and %d teams (%d failed branches)",
            len(pairs), self.project_count, self.team_count, len(self.failures),
            extra={"records": len(pairs)},
        )
        return pairs

    def list_projects(self) -> list[Project]:
        payload = self._client.fetch(f"{self._base}/_apis/projects", dict(self._params))
        projects = [p for p in map(Project.from_api, _value_list(payload)) if p is not None]
        self.project_count = len(projects)
        return projects

    def _teams_for(self, project: Project) -> list[Team]:
        url = f"{self._base}/_apis/projects/{project.id}/teams"
        payload = self._fetch_branch(url, "teams", project)
        if payload is None:
            return []
        teams = [
            t for t in (Team.from_api(item, project) for item in _value_list(payload))
            if t is not None
        ]
        logger.debug("Project %s has %d teams", project.name, len(teams))
        return teams

    def _members_for(self, project: Project, team: Team) -> list[MemberRef]:
        url = f"{self._base}/_apis/projects/{project.id}/teams/{team.id}/members"
        payload = self._fetch_branch(url, "members", project, team)
        if payload is None:
            return []
        return [MemberRef.from_api(item, team) for item in _value_list(payload)]

    def _fetch_branch(
        self, url: str, scope: str, project: Project, team: Optional[Team] = None
    ) -> Any:
        try:
            return self._client.fetch(url, dict(self._params))
        except RequestFailed as exc:
            failure = PartialEnumerationError(
                scope, project.name, exc, team.name if team else None
            )
            self.failures.append(failure)
            logger.warning("%s; continuing without it", failure)
            return None
