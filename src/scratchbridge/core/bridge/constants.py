"""Shared constants for bridge/service modules."""

from __future__ import annotations

# Transmissible characters; token value is index + 1, so the order is part of the wire format.
ALL_CHARS = (
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    "abcdefghijklmnopqrstuvwxyz"
    "0123456789"
    "!\"#$%&'()*+,-./:;<=>?@[\\]^_`{|}~ "
)
TOKEN_WIDTH = 2
NEWLINE_MARKER_TOKENS = "4049"
NEWLINE_TOKEN = "00"
INVALID_CHAR_PLACEHOLDER = "?"
DEFAULT_ENCODE_CHAR = " "

TOTAL_CHUNKS = 8
MAX_CHUNK_CHARS = 256
TRUNCATION_NOTICE = "nwSystem note: data over size limit, auto cutting."
EMPTY_SLOT_VALUE = "0"

QUEUE_ID_VAR = "Public.QueueIDc"
REQUEST_VAR = "Public.Requestidkc"
CHUNK_VAR_TEMPLATE = "Public.Respond.Chunk{index}c"
QUEUE_EMPTY = "0"
QUEUE_ACKNOWLEDGED = "0721"
QUEUE_SENTINELS = frozenset({QUEUE_EMPTY, QUEUE_ACKNOWLEDGED})

DEFAULT_POLL_INTERVAL_SEC = 10.0
DEFAULT_CHUNK_WRITE_DELAY_SEC = 0.3
DEFAULT_DISCONNECTED_BACKOFF_SEC = 10.0
DEFAULT_ERROR_BACKOFF_SEC = 5.0
DEFAULT_CONNECT_SETTLE_SEC = 5.0
DEFAULT_LOG_RETENTION_DAYS = 7

DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
DEFAULT_GEMINI_API_TIMEOUT_SEC = 60.0
GEMINI_API_URL_TEMPLATE = (
    "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
)
GEMINI_SYSTEM_PROMPT = (
    "You are a chatbot. Respond simply, briefly, and child-friendly. Use 'nw' for new lines. "
    "Use nw to break lines at about 80 letters a line (if the answer is one line, do not). "
    "Answer nicely, do not spam letters. Here is the user request: "
)
GENERATION_FALLBACK_TEXT = (
    "Sorry, I couldn't generate a response.nwTry asking something simple. nw(server error)"
)

SCRATCH_BASE_URL = "https://scratch.mit.edu"
SCRATCH_LOGIN_URL = "https://scratch.mit.edu/login/"
SCRATCH_CLOUD_URL = "wss://clouddata.scratch.mit.edu"
SCRATCH_CLOUD_PREFIX = "☁ "
SCRATCH_SESSION_COOKIE = "scratchsessionsid"
DEFAULT_SCRATCH_API_TIMEOUT_SEC = 20.0
SCRATCH_USER_AGENT = "scratchbridge (+https://scratch.mit.edu)"

REQUIRED_ENV_KEYS = ("SCRATCH_USERNAME", "SCRATCH_PASSWORD", "PROJECT_ID", "GEMINI_API_KEY")

__all__ = [name for name in globals() if not name.startswith("__")]
