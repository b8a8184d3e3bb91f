"""PiShock REST API access.

Public API:
    PiShockApiClient -- Lists owned and shared shockers
    ApiError -- Raised when a request fails
"""

from pishock.api.client import ApiError, PiShockApiClient

__all__ = ["ApiError", "PiShockApiClient"]
