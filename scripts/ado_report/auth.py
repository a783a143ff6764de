"""Request headers for Azure DevOps personal access token auth."""

from __future__ import annotations

import base64


def build_auth_headers(token: str) -> dict[str, str]:
    """Basic auth with an empty user name, as Azure DevOps expects for PATs."""
    if not token:
        raise ValueError("A personal access token is required")
    encoded = base64.b64encode(f":{token}".encode("utf-8")).decode("ascii")
    return {
        "Authorization": f"Basic {encoded}",
        "Content-Type": "application/json",
        "Accept": "application/json",
    }
