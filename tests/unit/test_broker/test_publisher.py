"""Tests for the broker command publisher."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from pishock.broker.client import CommandPublisher, PublisherError, channel_for
from pishock.config.settings import BrokerConfig
from pishock.domain.models import CommandLog, ShockCommand, ShockMode


def _command(**overrides) -> ShockCommand:
    fields = dict(shocker_id=501, client_id=1001, mode=ShockMode.VIBRATE, intensity=20, duration_ms=1000)
    fields.update(overrides)
    return ShockCommand(**fields)


class TestChannelFor:
    def test_own_hub(self) -> None:
        assert channel_for(1001) == "c1001-ops"

    def test_share_code(self) -> None:
        assert channel_for(2001, "ABC123") == "c2001-sops-ABC123"


class TestPublisherInit:
    @pytest.mark.parametrize("user_id", [0, -1])
    def test_rejects_bad_user_id(self, user_id: int) -> None:
        with pytest.raises(ValueError, match="user_id"):
            CommandPublisher(user_id, "abc")

    @pytest.mark.parametrize("token", ["", "   "])
    def test_rejects_empty_token(self, token: str) -> None:
        with pytest.raises(ValueError, match="token"):
            CommandPublisher(42, token)

    def test_username(self) -> None:
        assert CommandPublisher(42, "abc").username == "user42"

    def test_from_config(self) -> None:
        config = BrokerConfig(host="broker.test", port=6380, origin="tests", connect_timeout=1.5)
        publisher = CommandPublisher.from_config(42, "abc", config)
        assert publisher._host == "broker.test"
        assert publisher._port == 6380
        assert publisher._origin == "tests"
        assert publisher._connect_timeout == 1.5


class TestConnect:
    @pytest.mark.asyncio
    async def test_connect_pings(self, mock_redis: AsyncMock) -> None:
        publisher = CommandPublisher(42, "abc", redis=mock_redis)
        await publisher.connect()
        assert publisher.is_connected
        mock_redis.ping.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_connect_creates_authenticated_client(self, mock_redis: AsyncMock) -> None:
        with patch("pishock.broker.client.Redis", return_value=mock_redis) as redis_cls:
            publisher = CommandPublisher(42, "abc", host="broker.test", port=6380, connect_timeout=2.0)
            await publisher.connect()

        redis_cls.assert_called_once_with(
            host="broker.test",
            port=6380,
            username="user42",
            password="abc",
            socket_connect_timeout=2.0,
            socket_timeout=2.0,
        )
        assert publisher.is_connected

    @pytest.mark.asyncio
    async def test_connect_failure_wraps_error(self, mock_redis: AsyncMock) -> None:
        mock_redis.ping.side_effect = RedisConnectionError("refused")
        publisher = CommandPublisher(42, "abc", redis=mock_redis)

        with pytest.raises(PublisherError, match="refused"):
            await publisher.connect()
        assert not publisher.is_connected
        mock_redis.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_context_manager(self, mock_redis: AsyncMock) -> None:
        async with CommandPublisher(42, "abc", redis=mock_redis) as publisher:
            assert publisher.is_connected
        assert not publisher.is_connected
        mock_redis.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_disconnect_twice(self, mock_redis: AsyncMock) -> None:
        publisher = CommandPublisher(42, "abc", redis=mock_redis)
        await publisher.connect()
        await publisher.disconnect()
        await publisher.disconnect()
        mock_redis.aclose.assert_awaited_once()


class TestBuildPayload:
    def test_default_api_log(self) -> None:
        payload = CommandPublisher(42, "abc", origin="tests").build_payload(_command())
        assert payload.log == CommandLog.api(42, origin="tests")
        assert payload.mode == "v"
        assert payload.repeating is True

    def test_share_code_log(self) -> None:
        payload = CommandPublisher(42, "abc").build_payload(_command(share_code="ABC123"))
        assert payload.log.type == "sc"

    def test_explicit_log_kept(self) -> None:
        log = CommandLog.api(42, warning=True, held=True, origin="custom")
        payload = CommandPublisher(42, "abc").build_payload(_command(log=log))
        assert payload.log is log


class TestSend:
    @pytest.mark.asyncio
    async def test_send_publishes_json(self, mock_redis: AsyncMock) -> None:
        async with CommandPublisher(42, "abc", redis=mock_redis) as publisher:
            delivered = await publisher.send(_command(mode=ShockMode.SHOCK, intensity=35, duration_ms=300))

        assert delivered == 1
        channel, message = mock_redis.publish.await_args.args
        assert channel == "c1001-ops"
        assert json.loads(message) == {
            "id": 501,
            "m": "s",
            "i": 35,
            "d": 300,
            "r": True,
            "l": {"u": 42, "ty": "api", "w": False, "h": False, "o": "pishock"},
        }

    @pytest.mark.asyncio
    async def test_send_through_share_code(self, mock_redis: AsyncMock) -> None:
        async with CommandPublisher(42, "abc", redis=mock_redis) as publisher:
            await publisher.send(_command(client_id=2001, share_code="ABC123", mode=ShockMode.BEEP))

        channel, message = mock_redis.publish.await_args.args
        assert channel == "c2001-sops-ABC123"
        body = json.loads(message)
        assert body["m"] == "b"
        assert body["l"]["ty"] == "sc"

    @pytest.mark.asyncio
    async def test_send_requires_connection(self, mock_redis: AsyncMock) -> None:
        publisher = CommandPublisher(42, "abc", redis=mock_redis)
        with pytest.raises(PublisherError, match="Not connected"):
            await publisher.send(_command())
        mock_redis.publish.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_publish_failure_wraps_error(self, mock_redis: AsyncMock) -> None:
        mock_redis.publish.side_effect = RedisConnectionError("broken pipe")
        async with CommandPublisher(42, "abc", redis=mock_redis) as publisher:
            with pytest.raises(PublisherError, match="c1001-ops"):
                await publisher.send(_command())
