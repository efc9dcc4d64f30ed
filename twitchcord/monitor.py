"""Process lifecycle: callback server, heartbeat and log housekeeping"""

import json
import logging
import os
import threading
import time
from datetime import datetime, timezone
from http.server import ThreadingHTTPServer
from itertools import chain
from pathlib import Path
from typing import Optional

import redis

from . import constants
from .api_client import TwitchAPIClient
from .config import RelayConfig
from .handler import NotificationHandler
from .server import CallbackHandler
from .store import LiveMessageStore
from .webhook import DiscordWebhookDispatcher

logger = logging.getLogger("twitchcord.monitor")


def cleanup_old_logs(log_dir: str, max_age_days: int = constants.LOG_RETENTION_DAYS) -> int:
    """Remove rotated logs in ``log_dir`` not modified for ``max_age_days``; returns the count"""
    directory = Path(log_dir) if log_dir else None
    if directory is None or not directory.is_dir():
        return 0

    cutoff = time.time() - max_age_days * 86400
    stale = {
        path
        for path in chain(directory.glob("*.log"), directory.glob("*.log.*"))
        if path.is_file() and path.stat().st_mtime < cutoff
    }

    removed = 0
    for path in sorted(stale):
        try:
            path.unlink()
        except OSError as e:
            logger.warning(f"Could not remove stale log {path}: {e}")
        else:
            removed += 1

    if removed:
        logger.info(f"Removed {removed} log file(s) older than {max_age_days} days")
    return removed


class RelayMonitor:
    """Runs the EventSub callback server and publishes heartbeats"""

    def __init__(
        self,
        config: RelayConfig,
        redis_client: Optional["redis.Redis"] = None,
        connect_redis: bool = True,
    ):
        self.config = config

        self.redis_client = redis_client
        if self.redis_client is None and connect_redis:
            self.redis_client = self._connect_redis()

        self.api_client = TwitchAPIClient(config.client_id, config.client_secret)
        self.store = LiveMessageStore()
        self.dispatcher = DiscordWebhookDispatcher(self.store)
        self.handler = NotificationHandler(
            config.eventsub_secret,
            config.webhooks,
            self.api_client,
            self.dispatcher,
            broadcaster_id_override=config.broadcaster_id_override,
            footer_text=config.embed_footer_text,
        )
        self.running = False
        self.server: Optional[ThreadingHTTPServer] = None
        self.server_thread: Optional[threading.Thread] = None
        self.last_heartbeat = datetime.now(timezone.utc)
        self.last_log_cleanup = datetime.now(timezone.utc)

    def _connect_redis(self) -> Optional["redis.Redis"]:
        try:
            client = redis.Redis(
                host=self.config.redis_host,
                port=self.config.redis_port,
                username=self.config.redis_username,
                password=self.config.redis_password,
                db=self.config.redis_db,
                decode_responses=True,
                socket_connect_timeout=5,
            )
            client.ping()
            logger.info(
                f"Connected to Redis at {self.config.redis_host}:{self.config.redis_port}"
            )
            return client
        except redis.RedisError as e:
            logger.warning(f"Failed to connect to Redis: {e}. Heartbeat will be disabled.")
            return None

    def update_heartbeat(self) -> None:
        """Update heartbeat in Redis"""
        if not self.redis_client:
            return

        heartbeat_data = self.handler.get_status()
        heartbeat_data["timestamp"] = datetime.now(timezone.utc).isoformat()
        heartbeat_data["broadcasters"] = sorted({t.twitch for t in self.config.webhooks})

        # Expire after three missed intervals so stale data is cleared
        expiry = self.config.heartbeat_interval * 3
        try:
            self.redis_client.setex(
                constants.REDIS_KEY_HEARTBEAT, expiry, json.dumps(heartbeat_data)
            )
        except redis.RedisError as e:
            logger.error(f"Error updating heartbeat: {e}")
            return

        self.last_heartbeat = datetime.now(timezone.utc)
        logger.debug(f"Heartbeat updated: {heartbeat_data['live_messages']} live messages")

    def start_server(self) -> None:
        """Bind the callback server and serve it from a daemon thread"""
        CallbackHandler.notification_handler = self.handler
        self.server = ThreadingHTTPServer(
            (self.config.bind_address, self.config.server_port), CallbackHandler
        )
        self.server.daemon_threads = True

        bind_info = self.config.bind_address or "all interfaces"
        logger.info(f"Server ready on {bind_info}:{self.server.server_address[1]}")

        self.server_thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        self.server_thread.start()

    def start(self) -> None:
        """Start serving and keep the heartbeat going until stopped"""
        logger.info("Starting EventSub relay")
        self.running = True
        self.update_heartbeat()
        self.start_server()

        while self.running:
            time.sleep(1)
            now = datetime.now(timezone.utc)
            if (now - self.last_heartbeat).total_seconds() >= self.config.heartbeat_interval:
                self.update_heartbeat()

            if (now - self.last_log_cleanup).total_seconds() >= 86400:
                log_file = os.environ.get("TWITCHCORD_LOG_FILE")
                if log_file:
                    cleanup_old_logs(
                        os.path.dirname(log_file),
                        int(os.environ.get("TWITCHCORD_LOG_RETENTION_DAYS", constants.LOG_RETENTION_DAYS)),
                    )
                self.last_log_cleanup = now

    def stop(self) -> None:
        """Stop serving and log final stats"""
        logger.info("Stopping EventSub relay")
        self.running = False

        if self.server:
            self.server.shutdown()
            self.server.server_close()
            self.server = None

        status = self.handler.get_status()
        logger.info(
            f"Stats - Uptime: {status['uptime_seconds']}s, "
            f"Notifications: {status['stats']['notifications']}, "
            f"Posted: {status['stats']['messages_posted']}, "
            f"Deleted: {status['stats']['messages_deleted']}"
        )
