"""End-to-end tests of the callback server on an ephemeral port."""

from __future__ import annotations

import http.client
import threading
from http.server import ThreadingHTTPServer

import pytest
import requests

from twitchcord.server import CallbackHandler


@pytest.fixture()
def base_url(handler):
    CallbackHandler.notification_handler = handler
    server = ThreadingHTTPServer(("127.0.0.1", 0), CallbackHandler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.server_address[1]}"
    server.shutdown()
    server.server_close()
    CallbackHandler.notification_handler = None


def test_root_banner(base_url):
    response = requests.get(f"{base_url}/", timeout=5)
    assert response.status_code == 200
    assert response.text == "Twitch EventSub Webhook Endpoint"
    assert response.headers["Content-Type"] == "text/plain"


def test_health(base_url):
    response = requests.get(f"{base_url}/health", timeout=5)
    assert response.status_code == 200
    assert response.json()["status"] == "running"


def test_unknown_path(base_url):
    assert requests.get(f"{base_url}/nope", timeout=5).status_code == 404
    assert requests.post(f"{base_url}/nope", data=b"{}", timeout=5).status_code == 404


def test_challenge_round_trip(base_url, signed_request):
    payload = {"challenge": "abc123", "subscription": {"type": "stream.online"}}
    headers, body = signed_request(payload, message_type="webhook_callback_verification")
    response = requests.post(f"{base_url}/", data=body, headers=headers, timeout=5)

    assert response.status_code == 200
    assert response.text == "abc123"
    assert response.headers["Content-Type"] == "text/plain"


def test_bad_signature_forbidden(base_url, signed_request, notification):
    headers, body = signed_request(notification("stream.online"), secret="nope")
    response = requests.post(f"{base_url}/", data=body, headers=headers, timeout=5)
    assert response.status_code == 403
    assert response.content == b""


def test_notification_acknowledged(base_url, signed_request, notification, session):
    headers, body = signed_request(notification("stream.online"))
    response = requests.post(f"{base_url}/", data=body, headers=headers, timeout=5)

    assert response.status_code == 204
    session.post.assert_called_once()


@pytest.mark.parametrize("length", ["abc", "-5"])
def test_bad_content_length_is_400(base_url, session, length):
    host, port = base_url[len("http://"):].split(":")
    conn = http.client.HTTPConnection(host, int(port), timeout=5)
    try:
        conn.putrequest("POST", "/")
        conn.putheader("Content-Length", length)
        conn.endheaders()
        response = conn.getresponse()
        assert response.status == 400
        assert response.getheader("X-Content-Type-Options") == "nosniff"
    finally:
        conn.close()
    session.post.assert_not_called()


@pytest.mark.parametrize("method, path", [("get", "/"), ("get", "/health"), ("get", "/nope"), ("post", "/")])
def test_nosniff_header_on_every_response(base_url, method, path):
    response = getattr(requests, method)(f"{base_url}{path}", data=b"" if method == "post" else None, timeout=5)
    assert response.headers["X-Content-Type-Options"] == "nosniff"
