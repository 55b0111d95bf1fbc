"""Pytest shared fixtures for the user request validator."""
import json
import pathlib
import sys

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
import requests

from uservalidator.config.settings import ValidatorConfig
from uservalidator.core.taxonomy import TaxonomyCache, UserTypeResolver
from uservalidator.core.user_request_validator import UserRequestValidator


# ─────────────────────────────────────────────────────────────────────────────
# Network Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _block_outbound_http(monkeypatch, request):
    """
    Prevent unit tests from hitting a live forms service.

    Integration tests are explicitly marked with @pytest.mark.integration and
    are allowed to perform real HTTP calls by skipping this fixture.
    """
    if request.node.get_closest_marker("integration"):
        return

    def _stub_post(url, *args, **kwargs):
        raise RuntimeError(f"Unexpected HTTP POST in unit test: {url}")

    def _stub_get(url, *args, **kwargs):
        raise RuntimeError(f"Unexpected HTTP GET in unit test: {url}")

    monkeypatch.setattr(requests, "post", _stub_post)
    monkeypatch.setattr(requests, "get", _stub_get)


class StubResponse:
    def __init__(self, payload, status_code: int = 200):
        self._payload = payload
        self.status_code = status_code
        self.text = json.dumps(payload)

    def json(self):
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(response=self)


@pytest.fixture()
def stub_response():
    return StubResponse


# ─────────────────────────────────────────────────────────────────────────────
# Taxonomy
# ─────────────────────────────────────────────────────────────────────────────
class StaticProvider:
    """Taxonomy provider answering from a fixed scope -> config map."""

    def __init__(self, configs):
        self.configs = configs
        self.calls = []

    def get_user_type_config(self, scope_key, context=None):
        self.calls.append(scope_key)
        return self.configs.get(scope_key, {})


@pytest.fixture()
def config():
    return ValidatorConfig()


@pytest.fixture()
def provider():
    return StaticProvider({
        "default": {"teacher": ["hm", "crp"], "student": [], "administrator": ["deo"]},
        "ka": {"teacher": ["hm"], "parent": []},
    })


@pytest.fixture()
def cache():
    return TaxonomyCache()


@pytest.fixture()
def resolver(provider, cache, config):
    return UserTypeResolver(provider, cache, config)


@pytest.fixture()
def validator(resolver, config):
    return UserRequestValidator(resolver, config)


# ─────────────────────────────────────────────────────────────────────────────
# Pytest Configuration
# ─────────────────────────────────────────────────────────────────────────────
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (requires a running forms service)"
    )
