"""Shared fixtures for the twitchcord test suite."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest

from twitchcord.api_client import TwitchAPIClient
from twitchcord.config import WebhookTarget
from twitchcord.handler import NotificationHandler
from twitchcord.store import LiveMessageStore
from twitchcord.verification import compute_signature
from twitchcord.webhook import DiscordWebhookDispatcher

SECRET = "eventsub-test-secret"
BROADCASTER_ID = "1234"
WEBHOOK_URL = "https://discord.example/api/webhooks/1/token"

STREAM = {
    "user_id": BROADCASTER_ID,
    "title": "Speedrunning all day",
    "game_name": "Celeste",
    "viewer_count": 42,
    "thumbnail_url": "https://static-cdn.example/previews/{width}x{height}.jpg",
}

USER = {
    "id": BROADCASTER_ID,
    "login": "wissididom",
    "display_name": "Wissididom",
    "profile_image_url": "https://static-cdn.example/profile.png",
}


def _response(status=200, json_body=None, text="", content_type=None):
    response = MagicMock()
    response.status_code = status
    if content_type is None:
        content_type = "application/json" if json_body is not None else "text/plain"
    response.headers = {"Content-Type": content_type}
    response.json.return_value = json_body
    response.text = text if json_body is None else json.dumps(json_body)
    return response


@pytest.fixture()
def make_response():
    """Build a fake ``requests.Response``."""
    return _response


@pytest.fixture()
def signed_request():
    """Return (headers, body) for an EventSub message signed with SECRET."""

    def _build(payload, message_type="notification", message_id="msg-1",
               timestamp="2026-10-19T12:00:00.000Z", secret=SECRET):
        body = json.dumps(payload).encode("utf-8")
        headers = {
            "Twitch-Eventsub-Message-Id": message_id,
            "Twitch-Eventsub-Message-Timestamp": timestamp,
            "Twitch-Eventsub-Message-Signature": compute_signature(
                secret, message_id, timestamp, body
            ),
            "Twitch-Eventsub-Message-Type": message_type,
        }
        return headers, body

    return _build


@pytest.fixture()
def notification():
    """Build a notification envelope for a subscription type."""

    def _build(subscription_type, broadcaster_id=BROADCASTER_ID):
        return {
            "subscription": {
                "id": "sub-1",
                "type": subscription_type,
                "version": "1",
                "status": "enabled",
                "condition": {"broadcaster_user_id": broadcaster_id},
            },
            "event": {
                "broadcaster_user_id": broadcaster_id,
                "broadcaster_user_login": "eventlogin",
                "broadcaster_user_name": "EventName",
            },
        }

    return _build


@pytest.fixture()
def target():
    return WebhookTarget(twitch=BROADCASTER_ID, url=WEBHOOK_URL, discord="@everyone")


@pytest.fixture()
def api_client():
    client = MagicMock(spec=TwitchAPIClient)
    client.get_stream.return_value = dict(STREAM)
    client.get_user.return_value = dict(USER)
    return client


@pytest.fixture()
def session(make_response):
    """Discord session: every POST creates message 'm-1', DELETE answers 204."""
    session = MagicMock()
    session.post.return_value = make_response(200, {"id": "m-1", "channel_id": "c-1"})
    session.delete.return_value = make_response(204, text="")
    return session


@pytest.fixture()
def store():
    return LiveMessageStore()


@pytest.fixture()
def dispatcher(store, session):
    return DiscordWebhookDispatcher(store, session=session)


@pytest.fixture()
def handler(target, api_client, dispatcher):
    return NotificationHandler(SECRET, [target], api_client, dispatcher)
