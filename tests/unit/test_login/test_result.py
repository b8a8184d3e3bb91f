"""Tests for the single-assignment login result slot."""

from __future__ import annotations

import asyncio

import pytest

from pishock.domain.models import Credentials
from pishock.login.errors import (
    LoginCancelledError,
    LoginError,
    LoginServerError,
    LoginTimeoutError,
)
from pishock.login.result import LoginResultSlot


class TestResolve:
    def test_first_resolution_wins(self, result_slot: LoginResultSlot, credentials: Credentials) -> None:
        assert result_slot.resolve(credentials) is True
        assert result_slot.resolve(Credentials(7, "other")) is False
        assert result_slot.result() == (42, "abc")

    def test_duplicate_resolution_is_noop(self, result_slot: LoginResultSlot, credentials: Credentials) -> None:
        result_slot.resolve(credentials)
        assert result_slot.resolve(credentials) is False
        assert result_slot.is_settled
        assert result_slot.error is None

    def test_fail_after_resolve_is_noop(self, result_slot: LoginResultSlot, credentials: Credentials) -> None:
        result_slot.resolve(credentials)
        assert result_slot.fail(LoginCancelledError("too late")) is False
        assert result_slot.result() == credentials

    def test_resolve_after_fail_is_noop(self, result_slot: LoginResultSlot, credentials: Credentials) -> None:
        result_slot.fail(LoginServerError("boom"))
        assert result_slot.resolve(credentials) is False
        with pytest.raises(LoginServerError, match="boom"):
            result_slot.result()

    def test_result_while_pending_raises(self, result_slot: LoginResultSlot) -> None:
        assert not result_slot.is_settled
        with pytest.raises(LoginError, match="not available"):
            result_slot.result()


class TestWait:
    @pytest.mark.asyncio
    async def test_wait_returns_resolution(self, credentials: Credentials) -> None:
        slot = LoginResultSlot()
        loop = asyncio.get_running_loop()
        loop.call_later(0.01, slot.resolve, credentials)

        started = loop.time()
        assert await slot.wait(timeout=120) == (42, "abc")
        assert loop.time() - started < 5

    @pytest.mark.asyncio
    async def test_wait_times_out(self) -> None:
        slot = LoginResultSlot()
        loop = asyncio.get_running_loop()

        started = loop.time()
        with pytest.raises(LoginTimeoutError) as excinfo:
            await slot.wait(timeout=0.1)
        elapsed = loop.time() - started

        assert 0.09 <= elapsed < 2
        assert excinfo.value.timeout == 0.1
        assert isinstance(excinfo.value, TimeoutError)
        assert isinstance(slot.error, LoginTimeoutError)

    @pytest.mark.asyncio
    async def test_late_resolution_after_timeout_has_no_effect(self, credentials: Credentials) -> None:
        slot = LoginResultSlot()
        with pytest.raises(LoginTimeoutError):
            await slot.wait(timeout=0.05)

        assert slot.resolve(credentials) is False
        with pytest.raises(LoginTimeoutError):
            slot.result()

    @pytest.mark.asyncio
    async def test_wait_raises_stored_failure(self) -> None:
        slot = LoginResultSlot()
        asyncio.get_running_loop().call_soon(slot.fail, LoginCancelledError("cancelled"))
        with pytest.raises(LoginCancelledError):
            await slot.wait(timeout=5)

    @pytest.mark.asyncio
    async def test_wait_on_settled_slot_returns_immediately(self, credentials: Credentials) -> None:
        slot = LoginResultSlot()
        slot.resolve(credentials)
        assert await slot.wait(timeout=0) == credentials

    @pytest.mark.asyncio
    async def test_concurrent_resolutions_settle_once(self) -> None:
        slot = LoginResultSlot()
        candidates = [Credentials(1, "a"), Credentials(2, "b")]

        async def deliver(creds: Credentials) -> bool:
            await asyncio.sleep(0)
            return slot.resolve(creds)

        outcomes = await asyncio.gather(*(deliver(c) for c in candidates))

        assert sorted(outcomes) == [False, True]
        winner = candidates[outcomes.index(True)]
        assert await slot.wait(timeout=1) == winner
