"""Constants for the Flair HVAC integration."""

VERSION = "1.0.0"
DOMAIN = "flair"

CONF_CLIENT_ID = "client_id"
CONF_CLIENT_SECRET = "client_secret"
CONF_USERNAME = "username"
CONF_PASSWORD = "password"
CONF_POLL_INTERVAL = "poll_interval"

BASE_URL = "https://api.flair.co"
TOKEN_PATH = "/oauth/token"
STRUCTURES_PATH = "/api/structures"
HVAC_UNITS_PATH = "/api/hvac-units"
ROOMS_PATH = "/api/rooms"

OAUTH_SCOPE = "structures.view structures.edit hvac-units.view hvac-units.edit rooms.view"

# Refresh the access token this many seconds before it expires
TOKEN_REFRESH_BUFFER = 60

DEFAULT_POLL_INTERVAL = 60  # seconds

# Random offset added to every poll tick so many units don't hit the API together
POLL_JITTER_MIN = 1
POLL_JITTER_MAX = 20

MIN_TEMP = 16
MAX_TEMP = 32
