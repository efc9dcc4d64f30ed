"""Configuration management for twitchcord"""

import json
import logging
import os
from dataclasses import dataclass
from typing import List, Tuple

from dotenv import load_dotenv

from . import constants

logger = logging.getLogger("twitchcord.config")

# Required variables with descriptions
REQUIRED_VARS = {
    "TWITCH_CLIENT_ID": "Client ID of the Twitch application (https://dev.twitch.tv/console/apps)",
    "TWITCH_CLIENT_SECRET": "Client secret of the Twitch application",
    "EVENTSUB_SECRET": "Shared secret used to sign EventSub notifications (10-100 characters)",
    "WEBHOOKS": 'JSON list of targets, e.g. [{"twitch": "123", "url": "https://discord.com/api/webhooks/...", "discord": "@everyone"}]',
}

# Optional variables with descriptions and defaults
OPTIONAL_VARS = {
    "PORT": f"Port for the EventSub callback server (default: {constants.DEFAULT_PORT})",
    "CALLBACK_BIND_ADDRESS": "Address to bind callback server to (default: empty = all interfaces)",
    "CALLBACK_URL": "Public callback URL registered with EventSub (needed for --subscribe-only/--unsubscribe)",
    "BROADCASTER_ID_OVERRIDE": "Route every event to the first configured target's broadcaster (default: false)",
    "EMBED_FOOTER_TEXT": f"Footer line of the live message (default: {constants.EMBED_FOOTER_TEXT})",
    "REDIS_HOST": "Redis host for heartbeat monitoring (default: localhost)",
    "REDIS_PORT": "Redis port (default: 6379)",
    "REDIS_USERNAME": "Redis username for ACL (optional)",
    "REDIS_PASSWORD": "Redis password if required (optional)",
    "REDIS_DB": "Redis database number (default: 0)",
    "TWITCHCORD_HEARTBEAT_INTERVAL": "Seconds between heartbeat updates (default: 30)",
}


@dataclass(frozen=True)
class WebhookTarget:
    """One configured broadcaster -> Discord webhook pairing"""

    twitch: str
    url: str
    discord: str = ""

    @property
    def key(self) -> Tuple[str, str]:
        return (self.twitch, self.url)


def load_env_file(env_path: str) -> bool:
    """Load a .env file; variables already in the environment win"""
    if not os.path.isfile(env_path):
        return False

    logger.info(f"Loading environment variables from {env_path}")
    return load_dotenv(env_path, override=False)


def _display_value(var: str, value: str) -> str:
    if "SECRET" in var or "PASSWORD" in var:
        return "*" * min(len(value), 20)
    return value[:50] + ("..." if len(value) > 50 else "")


def validate_environment(show_details: bool = True) -> Tuple[bool, List[str]]:
    """
    Validate required and optional environment variables

    Args:
        show_details: If True, print detailed validation results

    Returns:
        Tuple of (is_valid, missing_vars)
    """
    missing_required = []

    if show_details:
        print("\n=== Environment Variable Validation ===\n")
        print("REQUIRED Variables:")

    for var, description in REQUIRED_VARS.items():
        value = os.getenv(var)
        if not value:
            missing_required.append(var)

        if show_details:
            if value:
                print(f"  ✓ {var} = {_display_value(var, value)}")
            else:
                print(f"  ✗ {var} (MISSING)")
            print(f"    → {description}")

    if show_details:
        print("\nOPTIONAL Variables:")
        for var, description in OPTIONAL_VARS.items():
            value = os.getenv(var)
            if value:
                print(f"  ✓ {var} = {_display_value(var, value)}")
            else:
                print(f"  ○ {var} (using default)")
            print(f"    → {description}")

        print()
        if missing_required:
            print(f"✗ Missing {len(missing_required)} required variable(s)")
        else:
            print("✓ All required environment variables are set!")

    return not missing_required, missing_required


def parse_webhook_targets(raw: str) -> List[WebhookTarget]:
    """
    Parse the WEBHOOKS variable into an ordered list of targets

    Raises:
        ValueError: if the value is not a JSON list of objects with
            ``twitch`` and ``url`` keys
    """
    try:
        entries = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"WEBHOOKS is not valid JSON: {e}") from e

    if not isinstance(entries, list):
        raise ValueError("WEBHOOKS must be a JSON list")

    targets = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict) or not entry.get("twitch") or not entry.get("url"):
            raise ValueError(
                f"WEBHOOKS entry {index} must be an object with 'twitch' and 'url'"
            )
        targets.append(
            WebhookTarget(
                twitch=str(entry["twitch"]),
                url=str(entry["url"]).rstrip("/"),
                discord=str(entry.get("discord") or ""),
            )
        )
    return targets


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in ("1", "true", "yes", "on")


class RelayConfig:
    """Configuration for the EventSub receiver and Discord relay"""

    def __init__(self, validate: bool = True):
        """
        Initialize configuration from environment variables

        Args:
            validate: If True, validate environment before loading config
        """
        if validate:
            is_valid, missing = validate_environment(show_details=False)
            if not is_valid:
                raise ValueError(
                    f"Missing required environment variables: {', '.join(missing)}. "
                    "Run with --validate flag to see details."
                )

        self.client_id = os.getenv("TWITCH_CLIENT_ID", "")
        self.client_secret = os.getenv("TWITCH_CLIENT_SECRET", "")
        self.eventsub_secret = os.getenv("EVENTSUB_SECRET", "")
        self.webhooks = parse_webhook_targets(os.getenv("WEBHOOKS", "[]"))

        server_port = int(os.getenv("PORT", str(constants.DEFAULT_PORT)))
        if not (1 <= server_port <= 65535):
            raise ValueError(f"Invalid port number: {server_port}. Must be between 1-65535")
        self.server_port = server_port
        self.bind_address = os.getenv("CALLBACK_BIND_ADDRESS", "")
        self.callback_url = os.getenv("CALLBACK_URL", "")

        self.broadcaster_id_override = _env_flag("BROADCASTER_ID_OVERRIDE")
        self.embed_footer_text = os.getenv(
            "EMBED_FOOTER_TEXT", constants.EMBED_FOOTER_TEXT
        )

        # Redis configuration for heartbeat
        self.redis_host = os.getenv("REDIS_HOST", constants.REDIS_DEFAULT_HOST)
        self.redis_port = int(os.getenv("REDIS_PORT", str(constants.REDIS_DEFAULT_PORT)))
        self.redis_username = os.getenv("REDIS_USERNAME", "") or None
        self.redis_password = os.getenv("REDIS_PASSWORD", "") or None
        self.redis_db = int(os.getenv("REDIS_DB", str(constants.REDIS_DEFAULT_DB)))
        self.heartbeat_interval = int(
            os.getenv(
                "TWITCHCORD_HEARTBEAT_INTERVAL",
                str(constants.HEARTBEAT_INTERVAL_DEFAULT),
            )
        )

        # Final safety checks
        if not self.eventsub_secret:
            raise ValueError("EVENTSUB_SECRET environment variable is required")
        if not self.webhooks:
            logger.warning("WEBHOOKS is empty; notifications will not be relayed")
        if self.broadcaster_id_override and len(self.webhooks) > 1:
            logger.warning(
                "BROADCASTER_ID_OVERRIDE is enabled with "
                f"{len(self.webhooks)} targets; every event is routed to broadcaster "
                f"{self.webhooks[0].twitch}"
            )
