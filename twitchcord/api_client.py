"""Twitch Helix API client with app access token handling"""

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests

from . import constants

logger = logging.getLogger("twitchcord.api_client")


@dataclass
class AccessToken:
    """App access token obtained through the client-credentials grant"""

    access_token: str
    expires_in: int
    token_type: str
    obtained_at: float = field(default_factory=time.monotonic)

    def is_expired(self, margin: int = constants.TOKEN_EXPIRY_MARGIN) -> bool:
        return time.monotonic() >= self.obtained_at + self.expires_in - margin


class TwitchAPIClient:
    """Client for the Twitch OAuth token endpoint and the Helix API"""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        session: Optional[requests.Session] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.base_url = constants.TWITCH_API_BASE_URL
        self.session = session or requests.Session()
        self.token: Optional[AccessToken] = None
        self._token_lock = threading.Lock()

    def get_token(self, force_refresh: bool = False) -> Optional[AccessToken]:
        """Return a valid app access token, fetching a new one when needed"""
        with self._token_lock:
            if self.token and not force_refresh and not self.token.is_expired():
                return self.token

            params = {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "grant_type": "client_credentials",
            }
            try:
                response = self.session.post(
                    constants.TWITCH_TOKEN_URL,
                    params=params,
                    timeout=constants.API_REQUEST_TIMEOUT,
                )
            except requests.RequestException as e:
                logger.error(f"Error requesting app access token: {e}")
                return None

            if not 200 <= response.status_code < 300:
                logger.error(
                    f"Token request failed: {response.status_code} - {response.text}"
                )
                return None

            try:
                data = response.json()
                self.token = AccessToken(
                    access_token=data["access_token"],
                    expires_in=int(data.get("expires_in", 0)),
                    token_type=data.get("token_type", "bearer"),
                )
            except (ValueError, KeyError) as e:
                logger.error(f"Error parsing token response: {e}")
                return None

            logger.info(f"Obtained app access token (expires in {self.token.expires_in}s)")
            return self.token

    def _auth_headers(self) -> Optional[Dict[str, str]]:
        token = self.get_token()
        if token is None:
            return None
        return {
            "Client-ID": self.client_id,
            "Authorization": f"Bearer {token.access_token}",
        }

    def _handle_api_response(
        self, response: requests.Response
    ) -> Optional[Dict[str, Any]]:
        """Handle a Helix response, logging errors"""
        if not 200 <= response.status_code < 300:
            logger.error(
                f"Twitch API error {response.status_code}: {response.text}"
            )
            return None
        if response.status_code == 204:
            return {}
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Error parsing API response: {e}")
            return None

    def _get_first(self, path: str, params: Dict[str, str]) -> Optional[Dict[str, Any]]:
        headers = self._auth_headers()
        if headers is None:
            return None

        try:
            response = self.session.get(
                f"{self.base_url}/{path}",
                params=params,
                headers=headers,
                timeout=constants.API_REQUEST_TIMEOUT,
            )
        except requests.RequestException as e:
            logger.error(f"Error fetching {path}: {e}")
            return None

        data = self._handle_api_response(response)
        items = data.get("data", []) if data else []
        return items[0] if items else None

    def get_user(
        self, user_id: Optional[str] = None, login: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        """Get a user's profile by id or login"""
        params = {}
        if user_id:
            params["id"] = user_id
        elif login:
            params["login"] = login
        return self._get_first("users", params)

    def get_stream(self, user_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """Get the current stream of a broadcaster, None when offline"""
        params = {"user_id": user_id} if user_id else {}
        return self._get_first("streams", params)

    def create_subscription(
        self, subscription_type: str, broadcaster_id: str, callback_url: str, secret: str
    ) -> bool:
        """Create an EventSub webhook subscription"""
        headers = self._auth_headers()
        if headers is None:
            return False

        body = {
            "type": subscription_type,
            "version": "1",
            "condition": {"broadcaster_user_id": broadcaster_id},
            "transport": {
                "method": "webhook",
                "callback": callback_url,
                "secret": secret,
            },
        }

        try:
            response = self.session.post(
                f"{self.base_url}/eventsub/subscriptions",
                json=body,
                headers=headers,
                timeout=constants.API_REQUEST_TIMEOUT,
            )
        except requests.RequestException as e:
            logger.error(f"Error creating {subscription_type} subscription: {e}")
            return False

        if response.status_code == 409:
            logger.info(
                f"{subscription_type} subscription for {broadcaster_id} already exists"
            )
            return True
        return self._handle_api_response(response) is not None

    def list_subscriptions(self) -> List[Dict[str, Any]]:
        """List all EventSub subscriptions of the application"""
        headers = self._auth_headers()
        if headers is None:
            return []

        subscriptions = []
        params: Dict[str, str] = {}
        while True:
            try:
                response = self.session.get(
                    f"{self.base_url}/eventsub/subscriptions",
                    params=params,
                    headers=headers,
                    timeout=constants.API_REQUEST_TIMEOUT,
                )
            except requests.RequestException as e:
                logger.error(f"Error listing subscriptions: {e}")
                break

            data = self._handle_api_response(response)
            if not data:
                break
            subscriptions.extend(data.get("data", []))

            cursor = data.get("pagination", {}).get("cursor")
            if not cursor:
                break
            params = {"after": cursor}

        return subscriptions

    def delete_subscription(self, subscription_id: str) -> bool:
        """Delete an EventSub subscription"""
        headers = self._auth_headers()
        if headers is None:
            return False

        try:
            response = self.session.delete(
                f"{self.base_url}/eventsub/subscriptions",
                params={"id": subscription_id},
                headers=headers,
                timeout=constants.API_REQUEST_TIMEOUT,
            )
        except requests.RequestException as e:
            logger.error(f"Error deleting subscription {subscription_id}: {e}")
            return False

        return self._handle_api_response(response) is not None
