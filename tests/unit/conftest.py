"""Unit test fixtures: a scripted fake Azure DevOps backend behind a mocked session."""

import json
import logging
from unittest.mock import MagicMock

import pytest

from scripts.ado_report.http_client import RetryingRequestClient

ORG_URL = "https://dev.azure.com/contoso"
ENTITLEMENTS_URL = "https://vsaex.dev.azure.com/contoso/_apis/userentitlements"


def make_response(status=200, body=None, headers=None, text=None):
    """Build a stand-in for requests.Response."""
    resp = MagicMock()
    resp.status_code = status
    resp.headers = headers or {}
    resp.reason = "Reason"
    resp.json.return_value = body
    if text is None:
        text = json.dumps(body) if body is not None else ""
    resp.text = text
    return resp


def projects_url():
    return f"{ORG_URL}/_apis/projects"


def teams_url(project_id):
    return f"{ORG_URL}/_apis/projects/{project_id}/teams"


def members_url(project_id, team_id):
    return f"{ORG_URL}/_apis/projects/{project_id}/teams/{team_id}/members"


def entitlement(user_id, display_name=None, principal_name=None, mail=None, license_name=None):
    return {
        "id": user_id,
        "user": {
            "displayName": display_name,
            "principalName": principal_name,
            "mailAddress": mail,
        },
        "accessLevel": {"licenseDisplayName": license_name},
    }


def member(identity_id, name=None):
    return {"identity": {"id": identity_id, "displayName": name}}


class FakeBackend:
    """Routes GETs by URL. Each URL serves its queued responses in order,
    repeating the last one once the queue is down to one entry."""

    def __init__(self):
        self.routes = {}
        self.calls = []

    def add(self, url, *responses):
        self.routes.setdefault(url, []).extend(responses)

    def add_json(self, url, body):
        self.add(url, make_response(200, body))

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, dict(params or {})))
        queue = self.routes.get(url)
        if not queue:
            return make_response(404, text=f"no route for {url}")
        resp = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(resp, Exception):
            raise resp
        return resp

    def calls_to(self, url):
        return [params for called, params in self.calls if called == url]


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def session(backend):
    s = MagicMock()
    s.headers = {}
    s.get.side_effect = backend.get
    return s


@pytest.fixture
def sleeps():
    """Records backoff delays instead of sleeping."""
    return []


@pytest.fixture
def client(session, sleeps):
    return RetryingRequestClient(
        token="test-pat", max_retries=3, base_delay=1.0, session=session, sleep=sleeps.append
    )


@pytest.fixture(autouse=True)
def reset_report_logger():
    """configure_logging() detaches the ado_report tree from the root logger; undo it."""
    yield
    logger = logging.getLogger("ado_report")
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
