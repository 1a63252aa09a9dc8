"""System tests for the access HTTP surface (in-process ASGI, SQLite)."""

import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from opsconsole.api.deps import get_access_policy
from opsconsole.database import get_db, get_session_factory
from opsconsole.kernel.access import AccessPolicy
from opsconsole.kernel.models import AccessLevel, AccountRole, AccountStatus, ModuleKey
from opsconsole.main import app


@pytest_asyncio.fixture
async def client(session_factory):
    """HTTP client bound to the per-test database."""

    async def _get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


class _RefusingSession:
    """Session whose every query fails as if the database were unreachable."""

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def get(self, *args, **kwargs):
        raise ConnectionRefusedError("database unreachable")

    async def execute(self, *args, **kwargs):
        raise ConnectionRefusedError("database unreachable")

    async def commit(self):
        raise ConnectionRefusedError("database unreachable")

    async def rollback(self):
        pass


@pytest.fixture
def auth_headers(make_token):
    def _headers(account_id: uuid.UUID) -> dict:
        return {"Authorization": f"Bearer {make_token(account_id)}"}

    return _headers


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert "X-Request-ID" in response.headers

    @pytest.mark.asyncio
    async def test_request_id_is_echoed(self, client):
        response = await client.get("/", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"


class TestSessionDecision:
    """GET /api/v1/session/decision"""

    @pytest.mark.asyncio
    async def test_anonymous_redirects_to_sign_in(self, client):
        response = await client.get("/api/v1/session/decision", params={"path": "/wiki"})
        assert response.status_code == 200
        data = response.json()
        assert data["outcome"] == "unauthenticated"
        assert data["redirect_to"] == "/auth"

    @pytest.mark.asyncio
    async def test_invalid_token_is_anonymous(self, client):
        response = await client.get(
            "/api/v1/session/decision",
            params={"path": "/wiki"},
            headers={"Authorization": "Bearer garbage"},
        )
        assert response.json()["outcome"] == "unauthenticated"

    @pytest.mark.asyncio
    async def test_first_sign_in_is_pending(self, client, auth_headers):
        account_id = uuid.uuid4()
        response = await client.get(
            "/api/v1/session/decision",
            params={"path": "/wiki"},
            headers=auth_headers(account_id),
        )
        data = response.json()
        assert data["outcome"] == "pending"
        assert data["screen"] == "pending_approval"

    @pytest.mark.asyncio
    async def test_suspended_admin_is_gated(self, client, seed_account, auth_headers):
        account_id = await seed_account(role=AccountRole.ADMIN, status=AccountStatus.SUSPENDED)
        response = await client.get(
            "/api/v1/session/decision",
            params={"path": "/credentials"},
            headers=auth_headers(account_id),
        )
        data = response.json()
        assert data["outcome"] == "suspended"
        assert data["screen"] == "pending_approval"

    @pytest.mark.asyncio
    async def test_member_module_checks(self, client, seed_account, auth_headers):
        account_id = await seed_account(module_permissions={"network": "write"})
        headers = auth_headers(account_id)

        allowed = await client.get(
            "/api/v1/session/decision", params={"path": "/network/devices"}, headers=headers
        )
        forbidden = await client.get(
            "/api/v1/session/decision", params={"path": "/credentials"}, headers=headers
        )
        unguarded = await client.get(
            "/api/v1/session/decision", params={"path": "/"}, headers=headers
        )

        assert allowed.json()["outcome"] == "allowed"
        assert forbidden.json()["outcome"] == "forbidden"
        assert forbidden.json()["redirect_to"] == "/access-denied"
        assert unguarded.json()["outcome"] == "allowed"


class TestSessionMe:
    """GET /api/v1/session/me"""

    @pytest.mark.asyncio
    async def test_requires_token(self, client):
        response = await client.get("/api/v1/session/me")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_member_navigation(self, client, seed_account, auth_headers):
        account_id = await seed_account(module_permissions={"credentials": "read"})
        response = await client.get("/api/v1/session/me", headers=auth_headers(account_id))

        assert response.status_code == 200
        data = response.json()
        assert data["account"]["permissions"]["credentials"] == "read"
        assert data["account"]["permissions"]["contracts"] == "none"

        keys = [item["key"] for item in data["navigation"]]
        assert "credentials" in keys
        assert "tasks" in keys
        assert "contracts" not in keys
        assert "users" not in keys

    @pytest.mark.asyncio
    async def test_admin_sees_everything(self, client, seed_account, auth_headers):
        account_id = await seed_account(role=AccountRole.ADMIN, module_permissions={})
        response = await client.get("/api/v1/session/me", headers=auth_headers(account_id))

        data = response.json()
        assert set(data["account"]["permissions"].values()) == {"write"}
        assert "users" in [item["key"] for item in data["navigation"]]

    @pytest.mark.asyncio
    async def test_pending_has_no_navigation(self, client, auth_headers):
        response = await client.get("/api/v1/session/me", headers=auth_headers(uuid.uuid4()))
        data = response.json()
        assert data["account"]["status"] == "pending"
        assert data["navigation"] == []


class TestAccountAdministration:
    """/api/v1/accounts"""

    @pytest.mark.asyncio
    async def test_member_is_refused(self, client, seed_account, auth_headers):
        member_id = await seed_account()
        response = await client.get("/api/v1/accounts", headers=auth_headers(member_id))
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_approve_applies_on_next_navigation(self, client, seed_account, auth_headers):
        admin_id = await seed_account(role=AccountRole.ADMIN)
        member_id = await seed_account(status=AccountStatus.PENDING)

        before = await client.get(
            "/api/v1/session/decision", params={"path": "/wiki"}, headers=auth_headers(member_id)
        )
        assert before.json()["outcome"] == "pending"

        response = await client.post(
            f"/api/v1/accounts/{member_id}/approve", headers=auth_headers(admin_id)
        )
        assert response.status_code == 200

        after = await client.get(
            "/api/v1/session/decision", params={"path": "/wiki"}, headers=auth_headers(member_id)
        )
        assert after.json()["outcome"] == "allowed"

    @pytest.mark.asyncio
    async def test_permission_edit_applies_on_next_navigation(
        self, client, seed_account, auth_headers
    ):
        admin_id = await seed_account(role=AccountRole.ADMIN)
        member_id = await seed_account()

        response = await client.put(
            f"/api/v1/accounts/{member_id}/permissions",
            json={"permissions": {"wiki": "none", "contracts": "read"}},
            headers=auth_headers(admin_id),
        )
        assert response.status_code == 200
        assert response.json()["data"]["wiki"] == "none"
        assert response.json()["data"]["tasks"] == "write"

        wiki = await client.get(
            "/api/v1/session/decision", params={"path": "/wiki"}, headers=auth_headers(member_id)
        )
        contracts = await client.get(
            "/api/v1/session/decision", params={"path": "/contracts"}, headers=auth_headers(member_id)
        )
        assert wiki.json()["outcome"] == "forbidden"
        assert contracts.json()["outcome"] == "allowed"

    @pytest.mark.asyncio
    async def test_invalid_level_is_rejected(self, client, seed_account, auth_headers):
        admin_id = await seed_account(role=AccountRole.ADMIN)
        member_id = await seed_account()
        response = await client.put(
            f"/api/v1/accounts/{member_id}/permissions",
            json={"permissions": {"wiki": "owner"}},
            headers=auth_headers(admin_id),
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_change_role(self, client, seed_account, auth_headers):
        admin_id = await seed_account(role=AccountRole.ADMIN)
        member_id = await seed_account(module_permissions={})

        response = await client.put(
            f"/api/v1/accounts/{member_id}/role",
            json={"role": "admin"},
            headers=auth_headers(admin_id),
        )
        assert response.status_code == 200

        decision = await client.get(
            "/api/v1/session/decision",
            params={"path": "/credentials"},
            headers=auth_headers(member_id),
        )
        assert decision.json()["outcome"] == "allowed"

    @pytest.mark.asyncio
    async def test_block_self_is_rejected(self, client, seed_account, auth_headers):
        admin_id = await seed_account(role=AccountRole.ADMIN)
        response = await client.post(
            f"/api/v1/accounts/{admin_id}/block", headers=auth_headers(admin_id)
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_account(self, client, seed_account, auth_headers):
        admin_id = await seed_account(role=AccountRole.ADMIN)
        response = await client.post(
            f"/api/v1/accounts/{uuid.uuid4()}/approve", headers=auth_headers(admin_id)
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_list_accounts(self, client, seed_account, auth_headers):
        admin_id = await seed_account(role=AccountRole.ADMIN, email="admin@example.com")
        legacy_id = await seed_account(allowed_modules=["network"])

        response = await client.get("/api/v1/accounts", headers=auth_headers(admin_id))
        assert response.status_code == 200
        rows = {row["id"]: row for row in response.json()}

        assert rows[str(admin_id)]["email"] == "admin@example.com"
        assert rows[str(legacy_id)]["permissions"]["network"] == "write"
        assert rows[str(legacy_id)]["permissions"]["wiki"] == "none"


class TestStoreOutage:
    """An unreachable database narrows access instead of failing the request."""

    @pytest.mark.asyncio
    async def test_decision_falls_back_to_pending(self, client, auth_headers):
        app.dependency_overrides[get_session_factory] = lambda: _RefusingSession

        response = await client.get(
            "/api/v1/session/decision",
            params={"path": "/wiki"},
            headers=auth_headers(uuid.uuid4()),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["outcome"] == "pending"
        assert data["screen"] == "pending_approval"


class TestInjectedPolicy:
    """Administrator endpoints use the injected access policy."""

    @pytest.mark.asyncio
    async def test_permission_edit_fills_from_injected_baseline(
        self, client, seed_account, auth_headers
    ):
        admin_id = await seed_account(role=AccountRole.ADMIN)
        member_id = await seed_account()
        app.dependency_overrides[get_access_policy] = lambda: AccessPolicy(
            {ModuleKey.NETWORK: AccessLevel.READ}
        )

        response = await client.put(
            f"/api/v1/accounts/{member_id}/permissions",
            json={"permissions": {"wiki": "read"}},
            headers=auth_headers(admin_id),
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["wiki"] == "read"
        assert data["network"] == "read"
        assert data["tasks"] == "none"
