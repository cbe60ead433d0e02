"""Mozilla VPN desktop client.

Signs the user in through the browser (OAuth with PKCE), registers a device
key with the account and exposes the relay directory for selection.
"""

__version__ = "0.1.0"
