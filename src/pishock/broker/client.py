"""Command publisher for the PiShock broker.

Shockers receive their operations over Redis pub/sub. Each hub listens
on its own channel; commands sent through a share code go to a separate
channel scoped by that code. The broker connection authenticates with
the web login credentials (username ``user<user_id>``, password = token).
"""

from __future__ import annotations

import logging

from redis.asyncio import Redis
from redis.exceptions import RedisError

from pishock.config.settings import BrokerConfig
from pishock.domain.models import CommandLog, CommandPayload, ShockCommand

logger = logging.getLogger(__name__)

DEFAULT_HOST = "redis.pishock.com"
DEFAULT_PORT = 6379
DEFAULT_ORIGIN = "pishock"


class PublisherError(Exception):
    """Raised when a command cannot be published."""


def channel_for(client_id: int, share_code: str | None = None) -> str:
    """Return the pub/sub channel a hub listens on.

    Args:
        client_id: Id of the hub the shocker is paired to.
        share_code: Share code, for shockers controlled through one.
    """
    if share_code is None:
        return f"c{client_id}-ops"
    return f"c{client_id}-sops-{share_code}"


class CommandPublisher:
    """Publishes shocker commands to the PiShock broker.

    Example usage::

        async with CommandPublisher(user_id, token) as publisher:
            await publisher.send(
                ShockCommand(shocker_id=1, client_id=2, mode=ShockMode.VIBRATE,
                             intensity=20, duration_ms=1000)
            )
    """

    def __init__(
        self,
        user_id: int,
        token: str,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        origin: str = DEFAULT_ORIGIN,
        connect_timeout: float = 5.0,
        redis: Redis | None = None,
    ) -> None:
        if user_id <= 0:
            raise ValueError("user_id must be > 0")
        if not token or not token.strip():
            raise ValueError("token cannot be empty")
        self._user_id = user_id
        self._token = token
        self._host = host
        self._port = port
        self._origin = origin
        self._connect_timeout = connect_timeout
        self._redis = redis
        self._connected = False

    @classmethod
    def from_config(cls, user_id: int, token: str, config: BrokerConfig) -> CommandPublisher:
        return cls(
            user_id,
            token,
            host=config.host,
            port=config.port,
            origin=config.origin,
            connect_timeout=config.connect_timeout,
        )

    @property
    def username(self) -> str:
        return f"user{self._user_id}"

    @property
    def is_connected(self) -> bool:
        return self._connected

    async def connect(self) -> None:
        """Open the broker connection and verify it with a PING."""
        if self._connected:
            return
        if self._redis is None:
            self._redis = Redis(
                host=self._host,
                port=self._port,
                username=self.username,
                password=self._token,
                socket_connect_timeout=self._connect_timeout,
                socket_timeout=self._connect_timeout,
            )
        try:
            await self._redis.ping()
        except RedisError as e:
            await self._close_redis()
            raise PublisherError(f"Failed to connect to broker at {self._host}:{self._port}: {e}") from e
        self._connected = True
        logger.info("Connected to broker at %s:%d as %s", self._host, self._port, self.username)

    async def disconnect(self) -> None:
        """Close the broker connection. Safe to call multiple times."""
        if self._redis is not None:
            await self._close_redis()
            logger.info("Disconnected from broker")
        self._connected = False

    async def __aenter__(self) -> CommandPublisher:
        await self.connect()
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        await self.disconnect()

    def build_payload(self, command: ShockCommand) -> CommandPayload:
        """Build the wire payload for ``command``, filling in a default log entry."""
        log = command.log
        if log is None:
            factory = CommandLog.api if command.share_code is None else CommandLog.share_code
            log = factory(self._user_id, warning=False, held=False, origin=self._origin)
        return CommandPayload(
            shocker_id=command.shocker_id,
            mode=command.mode.code,
            intensity=command.intensity,
            duration_ms=command.duration_ms,
            repeating=True,
            log=log,
        )

    async def send(self, command: ShockCommand) -> int:
        """Publish a command.

        Returns:
            The number of subscribers that received the command.

        Raises:
            PublisherError: If not connected or the publish fails.
        """
        if not self._connected or self._redis is None:
            raise PublisherError("Not connected. Call connect() first.")

        payload = self.build_payload(command)
        channel = channel_for(command.client_id, command.share_code)
        try:
            delivered = await self._redis.publish(channel, payload.to_json())
        except RedisError as e:
            raise PublisherError(f"Failed to publish to {channel}: {e}") from e
        logger.debug(
            "Sent %s to shocker %d on %s (%d receivers)",
            command.mode.value, command.shocker_id, channel, delivered,
        )
        return delivered

    async def _close_redis(self) -> None:
        redis, self._redis = self._redis, None
        self._connected = False
        if redis is not None:
            await redis.aclose()
