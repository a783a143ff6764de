"""Resolve the Azure DevOps PAT from a cloud secret manager when referenced.

Plain values (env var or --token) pass through unchanged, so local runs need
no cloud SDKs.
"""

from __future__ import annotations

import json
import logging
import os

from scripts.ado_report.errors import ConfigError

logger = logging.getLogger("ado_report.secrets")

_AWS_PREFIX = "aws-secret://"
_GCP_PREFIX = "gcp-secret://"


def resolve_secret(value: str) -> str:
    """Return the PAT, fetching it first if ``value`` points at a secret store.

    ``ADO_PAT=aws-secret://ado/report#pat`` reads the ``pat`` key of a JSON
    secret in AWS Secrets Manager (drop ``#pat`` when the whole secret string is
    the token). ``ADO_PAT=gcp-secret://ado-report-pat`` reads the latest version
    from GCP Secret Manager in ``GCP_PROJECT_ID``; a full
    ``projects/.../versions/...`` name works too. A literal token is returned
    untouched.
    """
    if value.startswith(_AWS_PREFIX):
        logger.info("Resolving token from AWS Secrets Manager")
        return _resolve_aws_secret(value[len(_AWS_PREFIX):])
    if value.startswith(_GCP_PREFIX):
        logger.info("Resolving token from GCP Secret Manager")
        return _resolve_gcp_secret(value[len(_GCP_PREFIX):])
    return value


def _resolve_aws_secret(ref: str) -> str:
    import boto3

    name, _, key = ref.partition("#")
    secretsmanager = boto3.client(
        "secretsmanager", region_name=os.environ.get("AWS_REGION", "us-east-1")
    )
    secret = secretsmanager.get_secret_value(SecretId=name)["SecretString"]
    if not key:
        return secret

    fields = json.loads(secret)
    try:
        return str(fields[key])
    except KeyError:
        raise ConfigError(f"Secret {name} has no key {key!r}") from None


def _resolve_gcp_secret(ref: str) -> str:
    from google.cloud import secretmanager

    if ref.startswith("projects/"):
        name = ref
    else:
        project = os.environ.get("GCP_PROJECT_ID", "")
        if not project:
            raise ConfigError(
                "GCP_PROJECT_ID must be set to resolve a short gcp-secret:// reference"
            )
        name = f"projects/{project}/secrets/{ref}/versions/latest"

    client = secretmanager.SecretManagerServiceClient()
    response = client.access_secret_version(request={"name": name})
    return response.payload.data.decode("UTF-8")
