"""HTTP server for EventSub webhook callbacks"""

import json
import logging
from http.server import BaseHTTPRequestHandler
from typing import Any, Optional
from urllib.parse import urlparse

from . import constants

logger = logging.getLogger("twitchcord.server")


class CallbackHandler(BaseHTTPRequestHandler):
    """HTTP handler for EventSub callbacks"""

    notification_handler: Optional["NotificationHandler"] = None

    def _send(self, status: int, body: bytes = b"", content_type: Optional[str] = None) -> None:
        self.send_response(status)
        self.send_header("X-Content-Type-Options", "nosniff")
        if content_type:
            self.send_header("Content-Type", content_type)
        if status != 204:
            self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if body:
            self.wfile.write(body)

    def do_GET(self) -> None:
        """Liveness banner and health report"""
        path = urlparse(self.path).path

        if path == "/":
            self._send(200, constants.ROOT_BANNER.encode("utf-8"), "text/plain")
            return

        if path == "/health" and self.notification_handler:
            status = self.notification_handler.get_status()
            self._send(200, json.dumps(status).encode("utf-8"), "application/json")
            return

        self._send(404, b"Not Found: " + self.path.encode("utf-8"), "text/plain")

    def do_POST(self) -> None:
        """Handle EventSub notifications"""
        try:
            content_length = int(self.headers.get("Content-Length", 0))
            if content_length < 0:
                raise ValueError(f"negative length {content_length}")
        except ValueError as e:
            logger.warning(f"Rejecting POST with bad Content-Length: {e}")
            self.close_connection = True
            self._send(400, b"Bad Request", "text/plain")
            return
        body = self.rfile.read(content_length)

        if urlparse(self.path).path != "/":
            self._send(404, b"Not Found: " + self.path.encode("utf-8"), "text/plain")
            return

        if not self.notification_handler:
            logger.error("NotificationHandler not configured")
            self._send(500, b"NotificationHandler not configured", "text/plain")
            return

        try:
            response = self.notification_handler.handle(dict(self.headers.items()), body)
        except Exception as e:
            logger.error(f"Error handling notification: {e}", exc_info=True)
            self._send(500)
            return

        self._send(response.status, response.body, response.content_type)

    def log_message(self, format: str, *args: Any) -> None:
        """Override to use our logger"""
        logger.debug(f"{self.address_string()} - {format % args}")
