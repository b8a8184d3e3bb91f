"""Domain models for pishock.

This package contains the core data structures, enumerations, and value
objects used throughout the SDK. All models use Pydantic v2 for
validation and serialization.
"""

from pishock.domain.models import (
    AllShockers,
    CallbackPayload,
    CommandLog,
    CommandPayload,
    Credentials,
    LoginState,
    OwnedShocker,
    SharedShocker,
    ShockCommand,
    ShockerCapabilities,
    ShockMode,
)

__all__ = [
    "AllShockers",
    "CallbackPayload",
    "CommandLog",
    "CommandPayload",
    "Credentials",
    "LoginState",
    "OwnedShocker",
    "SharedShocker",
    "ShockCommand",
    "ShockerCapabilities",
    "ShockMode",
]
