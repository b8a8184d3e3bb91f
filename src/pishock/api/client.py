"""PiShock REST API client.

Lists the shockers a user can control, either on their own hubs or
through share codes other users gave them. Every call takes the
``(user_id, token)`` pair produced by the web login.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from pishock.domain.models import (
    AllShockers,
    OwnedShocker,
    SharedShocker,
    ShockerCapabilities,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://ps.pishock.com/PiShock"


class ApiError(Exception):
    """Raised when a PiShock API request fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


# ---------------------------------------------------------------------------
# Response shapes
# ---------------------------------------------------------------------------


class _ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class _UserDeviceShocker(_ApiModel):
    name: str | None = None
    shocker_id: int
    is_paused: bool = False


class _UserDevice(_ApiModel):
    client_id: int
    name: str | None = None
    user_id: int
    username: str | None = None
    shockers: list[_UserDeviceShocker] | None = None


class _SharedShocker(_ApiModel):
    share_id: int
    client_id: int
    shocker_id: int
    shocker_name: str | None = None
    is_paused: bool = False
    max_intensity: int = 0
    can_continuous: bool = False
    can_shock: bool = False
    can_vibrate: bool = False
    can_beep: bool = False
    can_log: bool = False
    share_code: str | None = None


class _DeviceList(BaseModel):
    devices: list[_UserDevice]


class _ShareIdsByOwner(BaseModel):
    owners: dict[str, list[int]]


class _SharedByOwner(BaseModel):
    owners: dict[str, list[_SharedShocker] | None]


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class PiShockApiClient:
    """Async client for the PiShock device listing endpoints.

    Example usage::

        async with PiShockApiClient() as api:
            shockers = await api.get_all_shockers(user_id, token)
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    async def connect(self) -> None:
        """Create the HTTP client."""
        if self._client is not None:
            return
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
        )
        logger.debug("PiShock API client ready for %s", self._base_url)

    async def disconnect(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> PiShockApiClient:
        await self.connect()
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        await self.disconnect()

    async def get_all_shockers(self, user_id: int, token: str) -> AllShockers:
        """Fetch owned and shared shockers."""
        owned = await self.get_owned_shockers(user_id, token)
        shared = await self.get_shared_shockers(user_id, token)
        return AllShockers(owned=owned, shared=shared)

    async def get_owned_shockers(self, user_id: int, token: str) -> list[OwnedShocker]:
        """Retrieve all shockers on hubs owned by the user."""
        data = await self._get("/GetUserDevices", _auth_params(user_id, token))
        devices = _parse(_DeviceList, {"devices": data or []}).devices

        result: list[OwnedShocker] = []
        for device in devices:
            if device.shockers is None:
                continue
            for shocker in device.shockers:
                result.append(
                    OwnedShocker(
                        client_id=device.client_id,
                        hub_name=device.name or "",
                        user_id=device.user_id,
                        username=device.username or "",
                        shocker_id=shocker.shocker_id,
                        shocker_name=shocker.name or "",
                        is_paused=shocker.is_paused,
                    )
                )
        logger.debug("Found %d owned shockers for user %d", len(result), user_id)
        return result

    async def get_shared_shockers(self, user_id: int, token: str) -> list[SharedShocker]:
        """Retrieve all shockers shared with the user.

        Shockers the user shared themselves also appear once share codes
        exist for them.
        """
        params = _auth_params(user_id, token)
        data = await self._get("/GetShareCodesByOwner", params)
        by_owner = _parse(_ShareIdsByOwner, {"owners": data or {}}).owners

        share_ids = list(dict.fromkeys(sid for ids in by_owner.values() for sid in ids))
        if not share_ids:
            return []

        data = await self._get(
            "/GetShockersByShareIds",
            params + [("shareIds", str(sid)) for sid in share_ids],
        )
        shared = _parse(_SharedByOwner, {"owners": data or {}}).owners

        result: list[SharedShocker] = []
        for owner_username, shockers in shared.items():
            if shockers is None:
                continue
            for s in shockers:
                result.append(
                    SharedShocker(
                        owner_username=owner_username,
                        share_id=s.share_id,
                        client_id=s.client_id,
                        shocker_id=s.shocker_id,
                        shocker_name=s.shocker_name or "",
                        is_paused=s.is_paused,
                        max_intensity=s.max_intensity,
                        capabilities=ShockerCapabilities(
                            can_continuous=s.can_continuous,
                            can_shock=s.can_shock,
                            can_vibrate=s.can_vibrate,
                            can_beep=s.can_beep,
                            can_log=s.can_log,
                        ),
                        share_code=s.share_code or "",
                    )
                )
        logger.debug("Found %d shared shockers for user %d", len(result), user_id)
        return result

    async def _get(self, path: str, params: list[tuple[str, str]]) -> Any:
        """Send a GET request and return the decoded JSON body."""
        if self._client is None:
            raise ApiError("PiShock API client is not connected")
        try:
            resp = await self._client.get(path, params=params)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as e:
            raise ApiError(
                f"PiShock API request to {path} failed with status {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise ApiError(f"PiShock API request to {path} failed: {e}") from e
        except ValueError as e:
            raise ApiError(f"PiShock API returned invalid JSON for {path}") from e


def _auth_params(user_id: int, token: str) -> list[tuple[str, str]]:
    return [("UserId", str(user_id)), ("Token", token)]


def _parse(model: type[BaseModel], data: Any) -> Any:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ApiError(f"Unexpected PiShock API response: {e.error_count()} invalid field(s)") from e
