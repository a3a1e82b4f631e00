import os

DB_PATH = os.environ.get("BOARD_DB_PATH", "messageboard.db")
# "_test" selects the isolated test tables (threads_test, replies_test)
TABLE_SUFFIX = os.environ.get("BOARD_TABLE_SUFFIX", "")

ALLOWED_ORIGINS = os.environ.get("BOARD_ALLOWED_ORIGINS", "http://localhost:3000,http://localhost:8080").split(",")

# Server Configuration
DEFAULT_HOST = os.environ.get("BOARD_HOST", "0.0.0.0")
DEFAULT_PORT = int(os.environ.get("BOARD_PORT", "8000"))
LOG_LEVEL = os.environ.get("BOARD_LOG_LEVEL", "INFO")

# Listing limits
THREAD_LIST_LIMIT = 10
REPLY_PREVIEW_LIMIT = 3

# Soft-delete marker for replies
DELETED_TEXT = "[deleted]"

# Security Settings
BCRYPT_ROUNDS = int(os.environ.get("BOARD_BCRYPT_ROUNDS", "12"))
BCRYPT_MAX_PASSWORD_BYTES = 72
MAX_REQUEST_SIZE_MB = 1

# HTTP Status Codes
HTTP_BAD_REQUEST = 400
HTTP_REQUEST_ENTITY_TOO_LARGE = 413
HTTP_INTERNAL_SERVER_ERROR = 500
