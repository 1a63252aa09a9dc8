"""Unit tests for AccountLoader: defaults, failure recovery, concurrency."""

import asyncio
import logging
import uuid
from unittest.mock import AsyncMock

import pytest

from opsconsole.kernel.access import (
    ABSENT,
    AccountLoader,
    AccountProfile,
    Legacy,
    NewFormat,
    Principal,
)
from opsconsole.kernel.access.policy import DEFAULT_PERMISSIONS, AccessPolicy
from opsconsole.kernel.models import AccessLevel, AccountRole, AccountStatus, ModuleKey


def _store(role=None, status=None, permissions=ABSENT) -> AsyncMock:
    store = AsyncMock()
    store.get_role.return_value = role
    store.get_status.return_value = status
    store.get_permissions.return_value = permissions
    return store


class TestMissingRecords:
    """Missing rows are a valid state, mapped to safe defaults."""

    @pytest.mark.asyncio
    async def test_nothing_stored(self, principal):
        account = await AccountLoader(_store()).load(principal)
        assert account.id == principal.id
        assert account.role == AccountRole.MEMBER
        assert account.status == AccountStatus.PENDING
        assert dict(account.permissions) == dict(DEFAULT_PERMISSIONS)

    @pytest.mark.asyncio
    async def test_fetch_profile_defaults(self):
        profile = await AccountLoader(_store()).fetch_profile(uuid.uuid4())
        assert profile.role == AccountRole.MEMBER
        assert profile.status == AccountStatus.PENDING

    @pytest.mark.asyncio
    async def test_load_uses_lifecycle_fetch(self, principal):
        loader = AccountLoader(_store(role=AccountRole.MEMBER, status=AccountStatus.PENDING))
        loader.fetch_profile = AsyncMock(
            return_value=AccountProfile(role=AccountRole.ADMIN, status=AccountStatus.ACTIVE)
        )

        account = await loader.load(principal)

        loader.fetch_profile.assert_awaited_once_with(principal.id)
        assert account.is_admin
        assert account.is_active

    @pytest.mark.asyncio
    async def test_stored_values_used(self, principal):
        store = _store(
            role=AccountRole.ADMIN,
            status=AccountStatus.ACTIVE,
            permissions=Legacy(frozenset({ModuleKey.NETWORK})),
        )
        account = await AccountLoader(store).load(principal)
        assert account.is_admin
        assert account.is_active
        assert account.permissions[ModuleKey.NETWORK] == AccessLevel.WRITE
        assert account.permissions[ModuleKey.WIKI] == AccessLevel.NONE

    @pytest.mark.asyncio
    async def test_policy_is_applied(self, principal):
        policy = AccessPolicy({ModuleKey.CONTRACTS: AccessLevel.READ})
        account = await AccountLoader(_store(status=AccountStatus.ACTIVE), policy).load(principal)
        assert account.permissions[ModuleKey.CONTRACTS] == AccessLevel.READ
        assert account.permissions[ModuleKey.TASKS] == AccessLevel.NONE


class TestTransientFailures:
    """Store errors narrow access and are logged, never raised."""

    @pytest.mark.asyncio
    async def test_role_failure_means_member(self, principal, caplog):
        store = _store(
            status=AccountStatus.ACTIVE,
            permissions=NewFormat({ModuleKey.CREDENTIALS: AccessLevel.WRITE}),
        )
        store.get_role.side_effect = ConnectionError("database unreachable")

        with caplog.at_level(logging.WARNING, logger="opsconsole.kernel.access.loader"):
            account = await AccountLoader(store).load(principal)

        assert account.role == AccountRole.MEMBER
        assert "Failed to fetch role" in caplog.text

    @pytest.mark.asyncio
    async def test_status_failure_means_pending(self, principal):
        store = _store(role=AccountRole.ADMIN)
        store.get_status.side_effect = TimeoutError()
        account = await AccountLoader(store).load(principal)
        assert account.status == AccountStatus.PENDING

    @pytest.mark.asyncio
    async def test_permission_failure_means_defaults(self, principal):
        store = _store(role=AccountRole.MEMBER, status=AccountStatus.ACTIVE)
        store.get_permissions.side_effect = RuntimeError("boom")
        account = await AccountLoader(store).load(principal)
        assert dict(account.permissions) == dict(DEFAULT_PERMISSIONS)

    @pytest.mark.asyncio
    async def test_garbage_from_store_is_narrowed(self, principal):
        store = _store(role="admin", status="active", permissions={"credentials": "write"})
        account = await AccountLoader(store).load(principal)
        assert account.role == AccountRole.MEMBER
        assert account.status == AccountStatus.PENDING
        assert account.permissions[ModuleKey.CREDENTIALS] == AccessLevel.NONE


class TestConcurrency:
    """The three fetches are issued together and all must land."""

    @pytest.mark.asyncio
    async def test_fetches_run_concurrently(self, principal):
        started = []
        all_started = asyncio.Event()

        def make_fetch(name, value):
            async def fetch(account_id):
                started.append(name)
                if len(started) == 3:
                    all_started.set()
                # Sequential fetching would deadlock here
                await all_started.wait()
                return value
            return fetch

        store = AsyncMock()
        store.get_role.side_effect = make_fetch("role", AccountRole.MEMBER)
        store.get_status.side_effect = make_fetch("status", AccountStatus.ACTIVE)
        store.get_permissions.side_effect = make_fetch("permissions", ABSENT)

        account = await asyncio.wait_for(AccountLoader(store).load(principal), timeout=2)
        assert sorted(started) == ["permissions", "role", "status"]
        assert account.is_active

    @pytest.mark.asyncio
    async def test_load_waits_for_slowest_fetch(self):
        principal = Principal(id=uuid.uuid4())
        release = asyncio.Event()

        async def slow_permissions(account_id):
            await release.wait()
            return NewFormat({ModuleKey.NETWORK: AccessLevel.READ})

        store = _store(role=AccountRole.MEMBER, status=AccountStatus.ACTIVE)
        store.get_permissions.side_effect = slow_permissions

        task = asyncio.create_task(AccountLoader(store).load(principal))
        await asyncio.sleep(0)
        assert not task.done()

        release.set()
        account = await task
        assert account.permissions[ModuleKey.NETWORK] == AccessLevel.READ
