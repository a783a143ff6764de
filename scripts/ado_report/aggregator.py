"""Collapse (project, member) pairs into a per-user project list."""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping

from scripts.ado_report.models import MemberRef, Project

logger = logging.getLogger("ado_report.aggregator")


class MembershipIndex(Mapping[str, tuple[str, ...]]):
    """Read-only user id -> project names, in first-seen order."""

    def __init__(self, entries: Mapping[str, tuple[str, ...]]) -> None:
        self._entries = MappingProxyType(dict(entries))

    def __getitem__(self, user_id: str) -> tuple[str, ...]:
        return self._entries[user_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def projects_for(self, user_id: str) -> tuple[str, ...]:
        return self._entries.get(user_id, ())

    @property
    def membership_count(self) -> int:
        return sum(len(names) for names in self._entries.values())


class MembershipAggregator:
    """Single-use builder for a MembershipIndex.

    A project name is recorded once per user no matter how many of that
    project's teams list the user.
    """

    def __init__(self) -> None:
        self._projects: dict[str, list[str]] = {}
        self._seen: dict[str, set[str]] = {}
        self._consumed = False
        self.skipped_members = 0

    def aggregate(self, pairs: Iterable[tuple[Project, MemberRef]]) -> MembershipIndex:
        if self._consumed:
            raise RuntimeError("MembershipAggregator has already produced its index")
        self._consumed = True

        for project, member in pairs:
            user_id = member.identity_id
            if not user_id:
                self.skipped_members += 1
                logger.debug("Skipping member without identity id in team %s", member.team_id)
                continue
            seen = self._seen.setdefault(user_id, set())
            if project.name in seen:
                continue
            seen.add(project.name)
            self._projects.setdefault(user_id, []).append(project.name)

        index = MembershipIndex(
            {user_id: tuple(names) for user_id, names in self._projects.items()}
        )
        self._projects = {}
        self._seen = {}
        logger.info(
            "Aggregated memberships for %d users (%d skipped members)",
            len(index), self.skipped_members,
            extra={"records": len(index)},
        )
        return index
