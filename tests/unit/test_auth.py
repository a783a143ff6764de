"""Unit tests for the auth header builder."""

import base64

import pytest

from scripts.ado_report.auth import build_auth_headers


def test_basic_auth_with_empty_user():
    headers = build_auth_headers("my-pat")

    scheme, encoded = headers["Authorization"].split(" ")
    assert scheme == "Basic"
    assert base64.b64decode(encoded).decode() == ":my-pat"
    assert headers["Content-Type"] == "application/json"


def test_empty_token_rejected():
    with pytest.raises(ValueError):
        build_auth_headers("")
