"""Discord webhook delivery and EventSub subscription handling"""

import json
import logging
from typing import Any, Dict, List, Optional, Tuple

import requests

from . import constants
from .api_client import TwitchAPIClient
from .config import WebhookTarget
from .store import LiveMessageStore

logger = logging.getLogger("twitchcord.webhook")


def _read_response(response: requests.Response) -> Tuple[Optional[Any], str]:
    """Return (json, text) where json is set only for JSON content types"""
    content_type = response.headers.get("Content-Type", "") or ""
    if content_type.startswith("application/json"):
        try:
            return response.json(), ""
        except ValueError:
            logger.warning("Response claimed JSON but could not be parsed")
    return None, response.text


class DiscordWebhookDispatcher:
    """Posts live messages to Discord webhooks and deletes them again"""

    def __init__(
        self, store: LiveMessageStore, session: Optional[requests.Session] = None
    ):
        self.store = store
        self.session = session or requests.Session()
        self.headers = {
            "Content-Type": constants.WEBHOOK_CONTENT_TYPE,
            "User-Agent": constants.USER_AGENT,
        }

    def post_live_message(
        self, target: WebhookTarget, payload: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        """
        Execute the target's webhook and remember the created message

        The created message is stored only if Discord answered with a JSON
        message object carrying an ``id``.

        Returns:
            The created message, or None if nothing was stored
        """
        with self.store.lock_key(target.key):
            try:
                response = self.session.post(
                    target.url,
                    params={"wait": "true"},
                    data=json.dumps(payload),
                    headers=self.headers,
                    timeout=constants.API_REQUEST_TIMEOUT,
                )
            except requests.RequestException as e:
                logger.error(f"stream.online - error posting to webhook: {e}")
                return None

            message, text = _read_response(response)
            logger.info(
                f"stream.online - {response.status_code} - "
                f"{json.dumps(message) if message is not None else text}"
            )

            if isinstance(message, dict) and message.get("id"):
                self.store.put(target.key, message)
                return message
            return None

    def delete_live_message(self, target: WebhookTarget) -> bool:
        """
        Delete the message previously posted for this target

        Does nothing if no message is recorded. The record is removed
        whatever the outcome of the delete request.

        Returns:
            True if a delete request was issued
        """
        with self.store.lock_key(target.key):
            message = self.store.pop(target.key)
            if message is None:
                logger.debug(
                    f"stream.offline - no live message recorded for {target.twitch}"
                )
                return False

            try:
                response = self.session.delete(
                    f"{target.url}/messages/{message['id']}",
                    headers={"User-Agent": constants.USER_AGENT},
                    timeout=constants.API_REQUEST_TIMEOUT,
                )
            except requests.RequestException as e:
                logger.error(f"stream.offline - error deleting message {message['id']}: {e}")
                return True

            body, text = _read_response(response)
            logger.info(
                f"stream.offline - {response.status_code} - "
                f"{json.dumps(body) if body is not None else text}"
            )
            return True


class EventSubSubscriber:
    """Handles EventSub webhook subscriptions for the configured broadcasters"""

    def __init__(self, config: "RelayConfig", api_client: TwitchAPIClient):
        self.config = config
        self.api_client = api_client

    def _broadcaster_ids(self) -> List[str]:
        seen: List[str] = []
        for target in self.config.webhooks:
            if target.twitch not in seen:
                seen.append(target.twitch)
        return seen

    def subscribe(self) -> bool:
        """Subscribe to stream.online and stream.offline for every broadcaster"""
        if not self.config.callback_url:
            logger.error("CALLBACK_URL is required to create subscriptions")
            return False

        success = True
        for broadcaster_id in self._broadcaster_ids():
            for subscription_type in constants.RELAYED_SUBSCRIPTION_TYPES:
                logger.info(f"Subscribing to {subscription_type} for {broadcaster_id}")
                if not self.api_client.create_subscription(
                    subscription_type,
                    broadcaster_id,
                    self.config.callback_url,
                    self.config.eventsub_secret,
                ):
                    success = False
        return success

    def unsubscribe(self) -> bool:
        """Remove every subscription pointing at our callback URL"""
        if not self.config.callback_url:
            logger.error("CALLBACK_URL is required to remove subscriptions")
            return False

        success = True
        for subscription in self.api_client.list_subscriptions():
            callback = subscription.get("transport", {}).get("callback")
            if callback != self.config.callback_url:
                continue
            logger.info(
                f"Unsubscribing {subscription.get('type')} ({subscription.get('id')})"
            )
            if not self.api_client.delete_subscription(subscription["id"]):
                success = False
        return success
