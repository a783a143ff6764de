"""Typed records decoded once from Azure DevOps API payloads.

Everything downstream of the HTTP layer works against these shapes and never
touches the raw JSON.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


def _text(value: Any) -> Optional[str]:
    """Normalise an optional string field: non-strings and blanks become None."""
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def _section(payload: dict, key: str) -> dict:
    section = payload.get(key)
    return section if isinstance(section, dict) else {}


@dataclass(frozen=True)
class UserRecord:
    id: str
    display_name: Optional[str] = None
    principal_name: Optional[str] = None
    mail_address: Optional[str] = None
    license_name: Optional[str] = None

    @classmethod
    def from_api(cls, payload: dict) -> "UserRecord":
        """Decode a userentitlements ``members`` item.

        A missing id decodes to an empty string; the assembler skips such users.
        """
        user = _section(payload, "user")
        access = _section(payload, "accessLevel")
        return cls(
            id=_text(payload.get("id")) or "",
            display_name=_text(user.get("displayName")),
            principal_name=_text(user.get("principalName")),
            mail_address=_text(user.get("mailAddress")),
            license_name=(
                _text(access.get("licenseDisplayName"))
                or _text(access.get("accountLicenseType"))
            ),
        )


@dataclass(frozen=True)
class Project:
    id: str
    name: str

    @classmethod
    def from_api(cls, payload: dict) -> Optional["Project"]:
        project_id = _text(payload.get("id"))
        if not project_id:
            return None
        return cls(id=project_id, name=_text(payload.get("name")) or project_id)


@dataclass(frozen=True)
class Team:
    id: str
    name: str
    project_id: str

    @classmethod
    def from_api(cls, payload: dict, project: Project) -> Optional["Team"]:
        team_id = _text(payload.get("id"))
        if not team_id:
            return None
        return cls(
            id=team_id,
            name=_text(payload.get("name")) or team_id,
            project_id=_text(payload.get("projectId")) or project.id,
        )


@dataclass(frozen=True)
class MemberRef:
    identity_id: Optional[str]
    team_id: str
    display_name: Optional[str] = None
    unique_name: Optional[str] = None

    @classmethod
    def from_api(cls, payload: dict, team: Team) -> "MemberRef":
        identity = _section(payload, "identity")
        return cls(
            identity_id=_text(identity.get("id")),
            team_id=team.id,
            display_name=_text(identity.get("displayName")),
            unique_name=_text(identity.get("uniqueName")),
        )


@dataclass(frozen=True)
class OutputRow:
    user_name: str
    email: str
    project_names: str
    license_level: str

    def to_dict(self) -> dict[str, str]:
        return {
            "User Name": self.user_name,
            "Email": self.email,
            "Project Names": self.project_names,
            "License Level": self.license_level,
        }
