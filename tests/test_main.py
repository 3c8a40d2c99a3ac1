"""Tests for the application factory and lifespan."""

import asyncio

from fastapi.testclient import TestClient

from tokengate.core.config import Settings
from tokengate.main import create_app
from tokengate.schemas.audit import AuditType
from tokengate.services.gateway import build_gateway
from tokengate.store.memory import InMemoryTokenStore

SECRET = "main-test-secret-abcdefghijklmnopqrstuvwxyz"


def make_gateway(**overrides):
    settings = Settings(jwt_secret_key=SECRET, tokengate_store="memory", **overrides)
    return build_gateway(settings, store=InMemoryTokenStore())


class TestLifespan:
    def test_startup_bootstraps_admin_once(self):
        gateway = make_gateway(bootstrap_admin=True)

        with TestClient(create_app(gateway=gateway)) as client:
            tokens = client.portal.call(gateway.store.list_tokens)

            assert [record.user for record in tokens] == ["admin"]
            headers = {"Authorization": f"Bearer {tokens[0].token_string}"}
            response = client.get("/tokens", headers=headers)
            assert response.status_code == 200

    def test_startup_without_bootstrap(self):
        gateway = make_gateway(bootstrap_admin=False)

        with TestClient(create_app(gateway=gateway)) as client:
            assert client.portal.call(gateway.store.list_tokens) == []

    def test_shutdown_flushes_audit_entries(self):
        gateway = make_gateway(bootstrap_admin=True)

        with TestClient(create_app(gateway=gateway)):
            pass

        assert gateway.audit.pending == 0
        operations = asyncio.run(gateway.store.list_audit_logs({"type": AuditType.OPERATION}))
        assert len(operations) == 1


class TestCreateApp:
    def test_docs_hidden_unless_debug(self):
        client = TestClient(create_app(gateway=make_gateway()))
        assert client.get("/docs").status_code == 400

    def test_docs_available_in_debug(self):
        client = TestClient(create_app(gateway=make_gateway(debug=True)))
        assert client.get("/docs").status_code == 200

    def test_gateway_exposed_on_state(self):
        gateway = make_gateway()
        assert create_app(gateway=gateway).state.gateway is gateway
