"""Core domain models for the pishock SDK.

These models represent the data flowing through the system: the
credential pair produced by the web login, the shockers reported by
the REST API, and the commands published to the broker.
"""

from __future__ import annotations

import enum
from typing import Literal, NamedTuple

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_validator


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class LoginState(str, enum.Enum):
    """Lifecycle state of a single web login session."""

    IDLE = "idle"
    LISTENING = "listening"
    RESOLVED = "resolved"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"
    FAILED = "failed"
    CLOSED = "closed"


class ShockMode(str, enum.Enum):
    """Operation performed by a shocker."""

    VIBRATE = "vibrate"
    SHOCK = "shock"
    BEEP = "beep"
    END = "end"

    @property
    def code(self) -> str:
        """Single-letter code used on the wire."""
        return _MODE_CODES[self]


_MODE_CODES = {
    ShockMode.VIBRATE: "v",
    ShockMode.SHOCK: "s",
    ShockMode.BEEP: "b",
    ShockMode.END: "e",
}


# ---------------------------------------------------------------------------
# Login Models
# ---------------------------------------------------------------------------


class Credentials(NamedTuple):
    """The ``(user_id, token)`` pair produced by a successful login.

    Behaves like a plain tuple, so ``user_id, token = credentials`` works
    and ``credentials == (42, "abc")`` holds.
    """

    user_id: int
    token: str

    def __repr__(self) -> str:
        return f"Credentials(user_id={self.user_id}, token='***')"


class CallbackPayload(BaseModel):
    """Body POSTed by the login page to the local ``/callback`` route.

    Fields are strict: ``true``, ``"42"`` or ``42.0`` is not a user id.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: StrictInt = Field(gt=0, description="Numeric PiShock user id")
    token: StrictStr = Field(min_length=1, repr=False, description="Session token")

    @field_validator("token")
    @classmethod
    def _token_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("token must not be blank")
        return value

    def to_credentials(self) -> Credentials:
        return Credentials(user_id=self.id, token=self.token)


# ---------------------------------------------------------------------------
# Device Models
# ---------------------------------------------------------------------------


class ShockerCapabilities(BaseModel):
    """What a share code allows the recipient to do with a shocker."""

    model_config = ConfigDict(frozen=True)

    can_continuous: bool = False
    can_shock: bool = False
    can_vibrate: bool = False
    can_beep: bool = False
    can_log: bool = False


class OwnedShocker(BaseModel):
    """A shocker attached to one of the user's own hubs."""

    model_config = ConfigDict(frozen=True)

    client_id: int = Field(description="Id of the hub the shocker is paired to")
    hub_name: str = ""
    user_id: int
    username: str = ""
    shocker_id: int
    shocker_name: str = ""
    is_paused: bool = False


class SharedShocker(BaseModel):
    """A shocker another user shared through a share code.

    Shockers the user shared themselves also show up here once share
    codes for them exist.
    """

    model_config = ConfigDict(frozen=True)

    owner_username: str
    share_id: int
    client_id: int
    shocker_id: int
    shocker_name: str = ""
    is_paused: bool = False
    max_intensity: int = 0
    capabilities: ShockerCapabilities = Field(default_factory=ShockerCapabilities)
    share_code: str = ""


class AllShockers(BaseModel):
    """Owned and shared shockers fetched together."""

    owned: list[OwnedShocker] = Field(default_factory=list)
    shared: list[SharedShocker] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Command Models
# ---------------------------------------------------------------------------


class CommandLog(BaseModel):
    """Log entry attached to every published command."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    user_id: int = Field(alias="u")
    type: Literal["api", "sc"] = Field(default="api", alias="ty")
    warning: bool = Field(default=False, alias="w")
    held: bool = Field(default=False, alias="h")
    origin: str = Field(default="pishock", alias="o")

    @classmethod
    def api(cls, user_id: int, warning: bool = False, held: bool = False, origin: str = "pishock") -> CommandLog:
        """Log entry for a command sent to one of the user's own shockers."""
        return cls(user_id=user_id, type="api", warning=warning, held=held, origin=origin)

    @classmethod
    def share_code(cls, user_id: int, warning: bool = False, held: bool = False, origin: str = "pishock") -> CommandLog:
        """Log entry for a command sent through a share code."""
        return cls(user_id=user_id, type="sc", warning=warning, held=held, origin=origin)


class ShockCommand(BaseModel):
    """A single operation to perform on a shocker."""

    model_config = ConfigDict(frozen=True)

    shocker_id: int = Field(gt=0)
    mode: ShockMode
    intensity: int = Field(ge=0, description="Intensity (0-100)")
    duration_ms: int = Field(ge=0, description="Duration in milliseconds")
    client_id: int = Field(gt=0, description="Hub the shocker is paired to")
    share_code: str | None = Field(default=None, description="Set for shared shockers")
    log: CommandLog | None = None


class CommandPayload(BaseModel):
    """Wire format of a command, serialized by alias."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    shocker_id: int = Field(alias="id")
    mode: str = Field(alias="m")
    intensity: int = Field(alias="i")
    duration_ms: int = Field(alias="d")
    repeating: bool = Field(default=True, alias="r")
    log: CommandLog = Field(alias="l")

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)
