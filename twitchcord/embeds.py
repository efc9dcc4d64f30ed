"""Discord message payloads for live notifications"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from . import constants


def channel_url(login: str) -> str:
    return constants.TWITCH_CHANNEL_URL_TEMPLATE.format(login)


def thumbnail_url(template: str) -> str:
    """Fill the ``{width}``/``{height}`` placeholders of a stream thumbnail"""
    return template.replace("{width}", str(constants.THUMBNAIL_WIDTH)).replace(
        "{height}", str(constants.THUMBNAIL_HEIGHT)
    )


def build_live_embed(
    login: str,
    display_name: str,
    stream: Optional[Dict[str, Any]],
    user: Optional[Dict[str, Any]],
    footer_text: str = constants.EMBED_FOOTER_TEXT,
) -> Dict[str, Any]:
    """
    Build the embed announcing that a broadcaster went live

    Args:
        login: Broadcaster login, used for the channel URL
        display_name: Broadcaster display name shown in the author line
        stream: Helix stream object, None if the lookup failed
        user: Helix user object, None if the lookup failed
        footer_text: Footer credit line

    Returns:
        Discord embed object
    """
    stream = stream or {}
    user = user or {}
    url = channel_url(login)

    embed: Dict[str, Any] = {
        "url": url,
        "title": stream.get("title") or "N/A",
        "color": constants.EMBED_COLOR,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "fields": [
            {
                "name": "Game",
                "value": stream.get("game_name") or "N/A",
                "inline": True,
            },
            {
                "name": "Viewers",
                "value": str(stream.get("viewer_count") or 0),
                "inline": True,
            },
        ],
        "author": {
            "name": f"{display_name} is now live on Twitch!",
            "url": url,
        },
        "footer": {"text": footer_text},
    }
    if user.get("profile_image_url"):
        embed["author"]["icon_url"] = user["profile_image_url"]

    if stream.get("thumbnail_url"):
        embed["image"] = {
            "url": thumbnail_url(stream["thumbnail_url"]),
            "width": constants.THUMBNAIL_WIDTH,
            "height": constants.THUMBNAIL_HEIGHT,
        }

    return embed


def build_watch_button_row(login: str) -> Dict[str, Any]:
    """Action row holding the single "Watch Stream" link button"""
    return {
        "type": constants.COMPONENT_TYPE_ACTION_ROW,
        "id": 1,
        "components": [
            {
                "type": constants.COMPONENT_TYPE_BUTTON,
                "id": 2,
                "style": constants.BUTTON_STYLE_LINK,
                "label": constants.WATCH_BUTTON_LABEL,
                "url": channel_url(login),
            }
        ],
    }


def build_live_message(
    content: str,
    login: str,
    display_name: str,
    stream: Optional[Dict[str, Any]],
    user: Optional[Dict[str, Any]],
    footer_text: str = constants.EMBED_FOOTER_TEXT,
) -> Dict[str, Any]:
    """Full webhook execute payload: prefix text, embed and button"""
    return {
        "content": content,
        "embeds": [build_live_embed(login, display_name, stream, user, footer_text)],
        "components": [build_watch_button_row(login)],
    }
