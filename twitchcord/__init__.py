"""
Twitch EventSub to Discord Live Notification Relay

This package receives Twitch EventSub webhook notifications, verifies their
signatures and relays stream online/offline events to Discord webhooks.
"""

__version__ = "1.0.0"
