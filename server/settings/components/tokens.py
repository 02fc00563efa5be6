"""Auth token settings."""

from server.settings.components import config

# Token lifetime in seconds
AUTH_TOKEN_TTL = config('AUTH_TOKEN_TTL', cast=int, default=86400)
