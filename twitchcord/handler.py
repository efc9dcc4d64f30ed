"""EventSub notification handling: verification, routing and relaying"""

import json
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from . import constants
from .api_client import TwitchAPIClient
from .config import WebhookTarget
from .embeds import build_live_message
from .verification import verify_signature
from .webhook import DiscordWebhookDispatcher

logger = logging.getLogger("twitchcord.handler")


def _object(envelope: Dict[str, Any], name: str) -> Dict[str, Any]:
    """Nested envelope object, empty when missing, null or not an object"""
    value = envelope.get(name)
    return value if isinstance(value, dict) else {}


@dataclass
class Response:
    """What the callback server should answer"""

    status: int
    body: bytes = b""
    content_type: Optional[str] = None


class NotificationHandler:
    """Verifies inbound EventSub messages and relays stream events to Discord"""

    def __init__(
        self,
        secret: str,
        webhooks: List[WebhookTarget],
        api_client: TwitchAPIClient,
        dispatcher: DiscordWebhookDispatcher,
        broadcaster_id_override: bool = False,
        footer_text: str = constants.EMBED_FOOTER_TEXT,
    ):
        self.secret = secret
        self.webhooks = list(webhooks)
        self.api_client = api_client
        self.dispatcher = dispatcher
        self.broadcaster_id_override = broadcaster_id_override
        self.footer_text = footer_text
        self.stats = {
            "notifications": 0,
            "messages_posted": 0,
            "messages_deleted": 0,
            "signature_failures": 0,
            "revocations": 0,
            "start_time": datetime.now(timezone.utc),
        }
        self._stats_lock = threading.Lock()

    def _count(self, name: str, amount: int = 1) -> None:
        with self._stats_lock:
            self.stats[name] += amount

    def get_status(self) -> Dict[str, Any]:
        """Uptime, counters and number of tracked live messages"""
        now = datetime.now(timezone.utc)
        with self._stats_lock:
            counters = {
                name: value for name, value in self.stats.items() if name != "start_time"
            }
            uptime = now - self.stats["start_time"]
        return {
            "status": "running",
            "uptime_seconds": int(uptime.total_seconds()),
            "stats": counters,
            "live_messages": len(self.dispatcher.store),
        }

    def handle(self, headers: Mapping[str, str], body: bytes) -> Response:
        """
        Handle one POST from EventSub

        Args:
            headers: Request headers, names matched case-insensitively
            body: Raw request body

        Returns:
            The response to send back
        """
        headers = {name.lower(): value for name, value in headers.items()}

        if not verify_signature(
            self.secret,
            headers.get(constants.HEADER_MESSAGE_ID),
            headers.get(constants.HEADER_MESSAGE_TIMESTAMP),
            body,
            headers.get(constants.HEADER_MESSAGE_SIGNATURE),
        ):
            logger.warning("403 - Signatures didn't match.")
            self._count("signature_failures")
            return Response(403)

        try:
            notification = json.loads(body)
        except ValueError as e:
            logger.error(f"Error parsing notification body: {e}")
            return Response(400)
        if not isinstance(notification, dict):
            logger.error("Notification body is not a JSON object")
            return Response(400)

        message_type = (headers.get(constants.HEADER_MESSAGE_TYPE) or "").lower()

        if message_type == constants.MESSAGE_TYPE_VERIFICATION:
            challenge = notification.get("challenge")
            challenge = "" if challenge is None else str(challenge)
            logger.info(
                "Answering verification challenge for "
                f"{_object(notification, 'subscription').get('type')}"
            )
            return Response(200, challenge.encode("utf-8"), "text/plain")

        if message_type == constants.MESSAGE_TYPE_NOTIFICATION:
            self._count("notifications")
            try:
                self.handle_notification(notification)
            except Exception as e:
                logger.error(f"Error processing notification: {e}", exc_info=True)
            return Response(204)

        if message_type == constants.MESSAGE_TYPE_REVOCATION:
            self._count("revocations")
            subscription = _object(notification, "subscription")
            logger.warning(f"{subscription.get('type')} notifications revoked!")
            logger.warning(f"reason: {subscription.get('status')}")
            logger.warning(
                f"condition: {json.dumps(subscription.get('condition'), indent=4)}"
            )
            return Response(204)

        logger.warning(f"Unknown message type: {headers.get(constants.HEADER_MESSAGE_TYPE)}")
        return Response(204)

    def handle_notification(self, notification: Dict[str, Any]) -> None:
        """Dispatch a notification on its subscription type"""
        subscription_type = _object(notification, "subscription").get("type")
        event = _object(notification, "event")

        if subscription_type == constants.SUBSCRIPTION_STREAM_ONLINE:
            self._handle_stream_online(event)
        elif subscription_type == constants.SUBSCRIPTION_STREAM_OFFLINE:
            self._handle_stream_offline(event)
        else:
            logger.info(f"Event type: {subscription_type}")
            logger.info(json.dumps(event, indent=4))

    def resolve_broadcaster_id(self, event: Dict[str, Any]) -> Optional[str]:
        """
        Broadcaster whose targets receive this event.

        With the override enabled every event is attributed to the first
        configured target, whatever broadcaster triggered it.
        """
        if self.broadcaster_id_override and self.webhooks:
            return self.webhooks[0].twitch
        broadcaster_id = event.get("broadcaster_user_id")
        return str(broadcaster_id) if broadcaster_id is not None else None

    def _targets_for(self, broadcaster_id: Optional[str]) -> List[WebhookTarget]:
        return [target for target in self.webhooks if target.twitch == broadcaster_id]

    def _handle_stream_online(self, event: Dict[str, Any]) -> None:
        broadcaster_id = self.resolve_broadcaster_id(event)
        targets = self._targets_for(broadcaster_id)
        if not targets:
            logger.info(f"stream.online - no webhook configured for {broadcaster_id}")
            return

        stream = self.api_client.get_stream(broadcaster_id)
        user = self.api_client.get_user(user_id=broadcaster_id)
        if user is None:
            logger.warning(f"stream.online - user lookup failed for {broadcaster_id}")

        user_info = user or {}
        login = user_info.get("login") or event.get("broadcaster_user_login", "")
        display_name = (
            user_info.get("display_name") or event.get("broadcaster_user_name") or login
        )
        logger.info(f"stream.online - {display_name} ({broadcaster_id}) went live")

        for target in targets:
            payload = build_live_message(
                target.discord, login, display_name, stream, user, self.footer_text
            )
            if self.dispatcher.post_live_message(target, payload) is not None:
                self._count("messages_posted")

    def _handle_stream_offline(self, event: Dict[str, Any]) -> None:
        broadcaster_id = self.resolve_broadcaster_id(event)
        logger.info(f"stream.offline - {broadcaster_id} went offline")

        for target in self._targets_for(broadcaster_id):
            if self.dispatcher.delete_live_message(target):
                self._count("messages_deleted")
