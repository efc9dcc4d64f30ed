#!/usr/bin/env python3
"""
Twitch EventSub to Discord Live Notification Relay - Main Entry Point

Receives Twitch EventSub webhooks and posts "now live" messages to Discord
webhooks, deleting them again when the stream goes offline.
"""

import argparse
import logging
import os
import sys
from logging.handlers import RotatingFileHandler

from .api_client import TwitchAPIClient
from .config import RelayConfig, load_env_file, validate_environment
from .monitor import RelayMonitor, cleanup_old_logs
from .webhook import EventSubSubscriber

logger = logging.getLogger("twitchcord")


def configure_logging() -> None:
    """Log to stdout, and to a rotating file when TWITCHCORD_LOG_FILE is set"""
    handlers = [logging.StreamHandler(sys.stdout)]

    log_file = os.environ.get("TWITCHCORD_LOG_FILE")
    if log_file:
        # 10MB max file size, keep 5 backup files
        max_bytes = int(os.environ.get("TWITCHCORD_LOG_MAX_BYTES", 10 * 1024 * 1024))
        backup_count = int(os.environ.get("TWITCHCORD_LOG_BACKUP_COUNT", 5))
        handlers.append(
            RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count)
        )

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )


def main() -> None:
    """Main entry point"""
    parser = argparse.ArgumentParser(
        description="Twitch EventSub to Discord Live Notification Relay",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment Variables:
  TWITCH_CLIENT_ID              Twitch application client ID (required)
  TWITCH_CLIENT_SECRET          Twitch application client secret (required)
  EVENTSUB_SECRET               Shared secret for EventSub signatures (required)
  WEBHOOKS                      JSON list of {"twitch", "url", "discord"} targets (required)
  PORT                          Port for the callback server (default: 3000)
  CALLBACK_BIND_ADDRESS         Bind address for the callback server (default: all interfaces)
  CALLBACK_URL                  Public callback URL, used by --subscribe-only/--unsubscribe
  BROADCASTER_ID_OVERRIDE       Attribute every event to the first target (default: false)
  EMBED_FOOTER_TEXT             Footer line of the live message
  REDIS_HOST                    Redis host for heartbeat monitoring (default: localhost)
  REDIS_PORT                    Redis port (default: 6379)
  REDIS_USERNAME                Redis username for ACL (optional, requires Redis 6+)
  REDIS_PASSWORD                Redis password if required (optional)
  REDIS_DB                      Redis database number (default: 0)
  TWITCHCORD_HEARTBEAT_INTERVAL Heartbeat update interval in seconds (default: 30)
  TWITCHCORD_LOG_FILE           Path to log file (optional, logs to stdout if not set)
  TWITCHCORD_LOG_MAX_BYTES      Max log file size in bytes before rotation (default: 10485760 = 10MB)
  TWITCHCORD_LOG_BACKUP_COUNT   Number of backup log files to keep (default: 5)
  TWITCHCORD_LOG_RETENTION_DAYS Number of days to keep old log files (default: 7)

Example:
  export TWITCH_CLIENT_ID="abc123"
  export TWITCH_CLIENT_SECRET="def456"
  export EVENTSUB_SECRET="a-long-random-secret"
  export WEBHOOKS='[{"twitch": "12345", "url": "https://discord.com/api/webhooks/1/xyz", "discord": "@everyone"}]'
  python -m twitchcord
        """,
    )

    parser.add_argument(
        "--validate",
        action="store_true",
        help="Validate environment variables and exit",
    )
    parser.add_argument(
        "--subscribe-only",
        action="store_true",
        help="Create stream.online/stream.offline subscriptions and exit",
    )
    parser.add_argument(
        "--unsubscribe",
        action="store_true",
        help="Remove the subscriptions pointing at CALLBACK_URL and exit",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path of a .env file to load (default: ./.env)",
    )

    args = parser.parse_args()

    load_env_file(args.env_file)
    configure_logging()

    if os.environ.get("TWITCHCORD_LOG_FILE"):
        cleanup_old_logs(
            os.path.dirname(os.environ["TWITCHCORD_LOG_FILE"]),
            int(os.environ.get("TWITCHCORD_LOG_RETENTION_DAYS", "7")),
        )

    if args.validate:
        is_valid, missing = validate_environment(show_details=True)
        sys.exit(0 if is_valid else 1)

    try:
        is_valid, missing = validate_environment(show_details=False)
        if not is_valid:
            logger.error(f"Environment validation failed. Missing: {', '.join(missing)}")
            logger.error("Run with --validate flag for detailed information")
            sys.exit(1)

        config = RelayConfig(validate=False)  # Already validated above

        if args.subscribe_only or args.unsubscribe:
            subscriber = EventSubSubscriber(
                config, TwitchAPIClient(config.client_id, config.client_secret)
            )
            ok = subscriber.subscribe() if args.subscribe_only else subscriber.unsubscribe()
            logger.info("Subscription update finished" if ok else "Subscription update failed")
            sys.exit(0 if ok else 1)

        monitor = RelayMonitor(config)

        try:
            monitor.start()
        except KeyboardInterrupt:
            logger.info("Shutting down...")
        finally:
            monitor.stop()

    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
