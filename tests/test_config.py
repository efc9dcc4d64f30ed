"""Tests for environment loading and validation."""

from __future__ import annotations

import json
import os

import pytest

from twitchcord.config import (
    RelayConfig,
    WebhookTarget,
    load_env_file,
    parse_webhook_targets,
    validate_environment,
)

WEBHOOKS = json.dumps(
    [
        {"twitch": "1234", "url": "https://discord.example/api/webhooks/1/a/", "discord": "@everyone"},
        {"twitch": 5678, "url": "https://discord.example/api/webhooks/2/b"},
    ]
)


@pytest.fixture()
def env(monkeypatch):
    values = {
        "TWITCH_CLIENT_ID": "cid",
        "TWITCH_CLIENT_SECRET": "csecret",
        "EVENTSUB_SECRET": "esecret",
        "WEBHOOKS": WEBHOOKS,
    }
    for name in (
        "PORT", "CALLBACK_BIND_ADDRESS", "CALLBACK_URL", "BROADCASTER_ID_OVERRIDE",
        "EMBED_FOOTER_TEXT", "REDIS_HOST", "REDIS_PORT", "REDIS_USERNAME",
        "REDIS_PASSWORD", "REDIS_DB", "TWITCHCORD_HEARTBEAT_INTERVAL",
    ):
        monkeypatch.delenv(name, raising=False)
    for name, value in values.items():
        monkeypatch.setenv(name, value)
    return monkeypatch


class TestParseWebhookTargets:
    def test_parses_in_order(self):
        targets = parse_webhook_targets(WEBHOOKS)
        assert targets == [
            WebhookTarget("1234", "https://discord.example/api/webhooks/1/a", "@everyone"),
            WebhookTarget("5678", "https://discord.example/api/webhooks/2/b", ""),
        ]

    def test_key(self):
        assert WebhookTarget("1", "u").key == ("1", "u")

    @pytest.mark.parametrize(
        "raw",
        ["not json", '{"twitch": "1"}', '[{"twitch": "1"}]', '[{"url": "u"}]', '["x"]'],
    )
    def test_invalid(self, raw):
        with pytest.raises(ValueError):
            parse_webhook_targets(raw)


class TestRelayConfig:
    def test_defaults(self, env):
        config = RelayConfig()
        assert config.client_id == "cid"
        assert config.eventsub_secret == "esecret"
        assert config.server_port == 3000
        assert config.bind_address == ""
        assert config.broadcaster_id_override is False
        assert config.embed_footer_text == "Made by Wissididom"
        assert config.heartbeat_interval == 30
        assert len(config.webhooks) == 2

    def test_missing_required(self, env):
        env.delenv("EVENTSUB_SECRET")
        with pytest.raises(ValueError, match="EVENTSUB_SECRET"):
            RelayConfig()

    def test_invalid_port(self, env):
        env.setenv("PORT", "70000")
        with pytest.raises(ValueError, match="Invalid port"):
            RelayConfig()

    def test_override_flag(self, env, caplog):
        env.setenv("BROADCASTER_ID_OVERRIDE", "true")
        with caplog.at_level("WARNING"):
            config = RelayConfig()
        assert config.broadcaster_id_override is True
        assert "BROADCASTER_ID_OVERRIDE" in caplog.text


class TestEnvironment:
    def test_validate_reports_missing(self, env):
        env.delenv("WEBHOOKS")
        is_valid, missing = validate_environment(show_details=False)
        assert is_valid is False
        assert missing == ["WEBHOOKS"]

    def test_validate_masks_secrets(self, env, capsys):
        assert validate_environment(show_details=True) == (True, [])
        output = capsys.readouterr().out
        assert "csecret" not in output
        assert "TWITCH_CLIENT_ID = cid" in output

    def test_load_env_file_does_not_override(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TWITCH_CLIENT_ID", "from-env")
        monkeypatch.setenv("PORT", "placeholder")
        monkeypatch.delenv("PORT")
        env_file = tmp_path / ".env"
        env_file.write_text('# comment\nTWITCH_CLIENT_ID=from-file\nPORT="8443"\n\nBROKEN\n')

        load_env_file(str(env_file))

        assert os.environ["TWITCH_CLIENT_ID"] == "from-env"
        assert os.environ["PORT"] == "8443"

    def test_load_env_file_missing(self, tmp_path):
        assert load_env_file(str(tmp_path / "absent.env")) is False
