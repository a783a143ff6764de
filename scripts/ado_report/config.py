"""Configuration from CLI arguments and environment variables.

Precedence: explicit arguments, then environment (optionally loaded from a
.env file), then defaults. The PAT may be a cloud secret reference
(aws-secret://name#key, gcp-secret://name), resolved at load time.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from scripts.ado_report.errors import ConfigError
from scripts.ado_report.secrets import resolve_secret

ORG_URL_PATTERN = re.compile(r"^https://dev\.azure\.com/(?P<org>[^/\s?#]+)/?$")
ENTITLEMENTS_HOST = "https://vsaex.dev.azure.com"
DEFAULT_API_VERSION = "7.0"
DEFAULT_OUTPUT_DIR = "./output"


@dataclass(frozen=True)
class AzureDevOpsConfig:
    org_url: str
    token: str = field(repr=False)
    api_version: str = DEFAULT_API_VERSION

    @property
    def organization(self) -> str:
        match = ORG_URL_PATTERN.match(self.org_url)
        if not match:
            raise ConfigError(f"Not an Azure DevOps organization URL: {self.org_url}")
        return match.group("org")

    @property
    def base_url(self) -> str:
        return self.org_url.rstrip("/")

    @property
    def entitlements_url(self) -> str:
        return f"{ENTITLEMENTS_HOST}/{self.organization}/_apis/userentitlements"


@dataclass(frozen=True)
class RetryConfig:
    max_retries: int = 3
    base_delay: float = 1.0
    timeout: float = 30.0


@dataclass(frozen=True)
class ReportConfig:
    azure_devops: AzureDevOpsConfig
    retry: RetryConfig = field(default_factory=RetryConfig)
    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)
    log_file: Optional[Path] = None


def validate_org_url(value: str) -> str:
    if not ORG_URL_PATTERN.match(value or ""):
        raise ConfigError(
            f"Organization URL must look like https://dev.azure.com/<organization>, got {value!r}"
        )
    return value


def validate_max_retries(value: int) -> int:
    if not 1 <= value <= 10:
        raise ConfigError(f"max retries must be between 1 and 10, got {value}")
    return value


def _env_number(name: str, default: str, cast):
    raw = os.environ.get(name, default)
    try:
        return cast(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None


def load_config(
    org_url: Optional[str] = None,
    token: Optional[str] = None,
    output_dir: Optional[str] = None,
    log_file: Optional[str] = None,
    max_retries: Optional[int] = None,
) -> ReportConfig:
    """Build the run configuration. Missing or invalid values raise ConfigError."""
    load_dotenv()

    org_url = validate_org_url(org_url or os.environ.get("ADO_ORG_URL", ""))

    token_raw = token or os.environ.get("ADO_PAT", "")
    if not token_raw:
        raise ConfigError("A personal access token is required (--token or ADO_PAT)")
    resolved_token = resolve_secret(token_raw)

    if max_retries is None:
        max_retries = _env_number("ADO_MAX_RETRIES", "3", int)
    retry = RetryConfig(
        max_retries=validate_max_retries(max_retries),
        base_delay=_env_number("ADO_BACKOFF_BASE_SECONDS", "1.0", float),
        timeout=_env_number("ADO_REQUEST_TIMEOUT", "30", float),
    )

    log_file = log_file or os.environ.get("ADO_LOG_FILE") or None

    return ReportConfig(
        azure_devops=AzureDevOpsConfig(
            org_url=org_url,
            token=resolved_token,
            api_version=os.environ.get("ADO_API_VERSION", DEFAULT_API_VERSION),
        ),
        retry=retry,
        output_dir=Path(output_dir or os.environ.get("ADO_OUTPUT_DIR", DEFAULT_OUTPUT_DIR)),
        log_file=Path(log_file) if log_file else None,
    )
