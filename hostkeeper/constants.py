"""Shared constants for Hostkeeper."""

APP_NAME = "Hostkeeper"
APP_VERSION = "0.1.0"

# Persisted key-value storage keys
HOSTS_KEY = "hosts"
ACTIVE_KEY = "currentHost"
SIDEBAR_CLOSED_KEY = "sidebar-closed"

# Stored in place of an active host url when there is none
NO_ACTIVE_SENTINEL = "null"

# Username recorded for hosts whose credential is a URL fragment token
FRAGMENT_TOKEN_USERNAME = "sandstorm-sentinel"

# Seed file consulted when the live store is empty
SEED_FILENAME = "servers.json"

# Validation defaults
DEFAULT_VALIDATION_TIMEOUT = 5.0  # seconds
INFO_PATH = "/api/info"

# Branding
DEFAULT_PRODUCT_NAME = "Rocket.Chat"
CANONICAL_HOST_PATTERN = r"https?://open\.rocket\.chat"
PROTOCOL_SCHEME = "rocketchat"

# Logging defaults
LOG_DIR = "logs"
DEFAULT_LOG_LEVEL = "INFO"
