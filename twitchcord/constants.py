"""Application constants and configuration defaults"""

# Twitch API Configuration
TWITCH_TOKEN_URL = "https://id.twitch.tv/oauth2/token"
TWITCH_API_BASE_URL = "https://api.twitch.tv/helix"
TWITCH_CHANNEL_URL_TEMPLATE = "https://www.twitch.tv/{}"

# Refetch the app access token this many seconds before it expires
TOKEN_EXPIRY_MARGIN = 60

# EventSub request headers (lower-cased for lookups)
HEADER_MESSAGE_ID = "Twitch-Eventsub-Message-Id".lower()
HEADER_MESSAGE_TIMESTAMP = "Twitch-Eventsub-Message-Timestamp".lower()
HEADER_MESSAGE_SIGNATURE = "Twitch-Eventsub-Message-Signature".lower()
HEADER_MESSAGE_TYPE = "Twitch-Eventsub-Message-Type".lower()

# EventSub message types
MESSAGE_TYPE_VERIFICATION = "webhook_callback_verification"
MESSAGE_TYPE_NOTIFICATION = "notification"
MESSAGE_TYPE_REVOCATION = "revocation"

# Prefix of the HMAC signature header value
HMAC_PREFIX = "sha256="

# EventSub subscription types
SUBSCRIPTION_STREAM_ONLINE = "stream.online"
SUBSCRIPTION_STREAM_OFFLINE = "stream.offline"
RELAYED_SUBSCRIPTION_TYPES = [
    SUBSCRIPTION_STREAM_ONLINE,
    SUBSCRIPTION_STREAM_OFFLINE,
]

# Discord message layout
EMBED_COLOR = 6570404
EMBED_FOOTER_TEXT = "Made by Wissididom"
THUMBNAIL_WIDTH = 400
THUMBNAIL_HEIGHT = 225
WATCH_BUTTON_LABEL = "Watch Stream"
COMPONENT_TYPE_ACTION_ROW = 1
COMPONENT_TYPE_BUTTON = 2
BUTTON_STYLE_LINK = 5

# HTTP Server Configuration
DEFAULT_PORT = 3000
ROOT_BANNER = "Twitch EventSub Webhook Endpoint"

# API Request Configuration
API_REQUEST_TIMEOUT = 10  # seconds
USER_AGENT = "Twitchcord-EventSub-Relay/1.0"
WEBHOOK_CONTENT_TYPE = "application/json"

# Redis Configuration
REDIS_DEFAULT_HOST = "localhost"
REDIS_DEFAULT_PORT = 6379
REDIS_DEFAULT_DB = 0
REDIS_KEY_HEARTBEAT = "twitchcord:heartbeat"

HEARTBEAT_INTERVAL_DEFAULT = 30  # seconds
LOG_RETENTION_DAYS = 7
