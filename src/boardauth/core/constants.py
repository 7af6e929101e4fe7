"""Application-wide constants.

This module defines constants used throughout the application
to avoid magic numbers and ensure consistency.
"""

# String field lengths
MAX_USERNAME_LENGTH = 50
MIN_USERNAME_LENGTH = 3
MAX_EMAIL_LENGTH = 255
MAX_NAME_LENGTH = 255
MAX_IPV6_LENGTH = 45
MAX_USER_AGENT_LENGTH = 512
MAX_ROLE_LENGTH = 50

# Password requirements
MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 128
BCRYPT_ROUNDS = 12

# Token settings
ACCESS_TOKEN_ALGORITHM = "HS256"
ACCESS_TOKEN_TYPE = "access"
ACCESS_TOKEN_JTI_LENGTH = 32
REFRESH_TOKEN_BYTES = 32
SESSION_ID_BYTES = 32
SHA256_HEX_LENGTH = 64
MAX_SESSION_ID_LENGTH = 64

# WebSocket
WEBSOCKET_BEARER_PROTOCOL = "bearer"
WEBSOCKET_RATE_LIMIT_CLOSE_CODE = 4429

# Rate limiting
ANONYMOUS_RATE_LIMIT_KEY = "anonymous"

# Secret key requirements
MIN_SECRET_KEY_LENGTH = 32
DEFAULT_INSECURE_SECRET = "change-me-in-production"

# Error documentation
DEFAULT_API_DOCS_BASE_URL = "https://api.example.com"
