"""pishock -- Python client SDK for the PiShock device-control service.

The package obtains a credential pair through a browser-mediated local
login, lists the shockers reachable with those credentials over the
REST API, and publishes control commands to the broker.
"""

__version__ = "0.1.0"
