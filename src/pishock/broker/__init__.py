"""Command publishing over the PiShock broker.

Public API:
    CommandPublisher -- Publishes ShockCommands over Redis pub/sub
    PublisherError -- Raised when publishing fails
    channel_for -- Channel name for a hub (and optional share code)
"""

from pishock.broker.client import CommandPublisher, PublisherError, channel_for

__all__ = ["CommandPublisher", "PublisherError", "channel_for"]
