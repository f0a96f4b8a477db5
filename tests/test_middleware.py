"""
Ambient middleware tests: request id, rate-limit key, JSON log records and
the commit helper's IntegrityError mapping.
"""

import json
import logging

import pytest

from app.core.exceptions import DuplicateEmailError, DuplicatePanError
from app.middleware.logging_config import JSONFormatter
from app.middleware.rate_limiter import client_ip
from app.models import db
from app.models.client import Client
from app.utils.helpers import commit_or_raise


class TestRequestTiming:
    def test_request_id_echoed(self, client):
        res = client.get("/api/v1/health/ready", headers={"X-Request-ID": "abc123"})
        assert res.headers["X-Request-ID"] == "abc123"
        assert "X-Request-Duration-Ms" in res.headers

    def test_request_id_generated(self, client):
        res = client.get("/api/v1/health/ready")
        assert len(res.headers["X-Request-ID"]) == 12


class TestClientIp:
    def test_first_forwarded_hop(self, app):
        with app.test_request_context(
            "/", headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.1"},
        ):
            assert client_ip() == "203.0.113.7"

    def test_remote_addr_fallback(self, app):
        with app.test_request_context("/", environ_base={"REMOTE_ADDR": "198.51.100.2"}):
            assert client_ip() == "198.51.100.2"


def test_json_formatter_includes_extras():
    record = logging.LogRecord("app.test", logging.INFO, __file__, 1, "Step %d saved",
                               (3,), None)
    record.request_id = "rid-1"
    record.client_id = 42
    entry = json.loads(JSONFormatter().format(record))
    assert entry["message"] == "Step 3 saved"
    assert entry["request_id"] == "rid-1"
    assert entry["client_id"] == 42
    assert "user_id" not in entry


class TestCommitOrRaise:
    def _client(self, pan, email):
        return Client(legal_name="Dup Co", pan_number=pan, company_type="PVT_LTD", email=email)

    def test_duplicate_pan_mapped(self):
        db.session.add(self._client("ABCDE1234F", "a@acme.com"))
        commit_or_raise()
        db.session.add(self._client("ABCDE1234F", "b@acme.com"))
        with pytest.raises(DuplicatePanError):
            commit_or_raise()
        assert Client.query.count() == 1

    def test_duplicate_email_mapped(self):
        db.session.add(self._client("ABCDE1234F", "a@acme.com"))
        commit_or_raise()
        db.session.add(self._client("ZYXWV9876A", "a@acme.com"))
        with pytest.raises(DuplicateEmailError):
            commit_or_raise()
