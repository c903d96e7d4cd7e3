"""
Constants and configuration for the Azure OpenAI client.

All values are loaded from environment variables, allowing the deployment
environment to tune the client without code changes.
"""

import os


class _DontChangeMe:
    MAIN_ENV_PREFIX = "AZOPENAI_"


# REST API version sent with every call
API_VERSION = os.environ.get(
    f"{_DontChangeMe.MAIN_ENV_PREFIX}API_VERSION", "2023-05-15"
).strip()

# Scope requested from a token credential
DEFAULT_TOKEN_SCOPE = os.environ.get(
    f"{_DontChangeMe.MAIN_ENV_PREFIX}TOKEN_SCOPE",
    "https://cognitiveservices.azure.com/.default",
).strip()

# Number of request buffers kept in the fast-path ring
BUFFER_POOL_SIZE = int(
    os.environ.get(f"{_DontChangeMe.MAIN_ENV_PREFIX}BUFFER_POOL_SIZE", "100").strip()
)

# Maximum number of undelivered chunks per stream
STREAM_QUEUE_SIZE = int(
    os.environ.get(f"{_DontChangeMe.MAIN_ENV_PREFIX}STREAM_QUEUE_SIZE", "16").strip()
)

# Bytes requested from the socket per read while streaming
STREAM_CHUNK_SIZE = int(
    os.environ.get(f"{_DontChangeMe.MAIN_ENV_PREFIX}STREAM_CHUNK_SIZE", "512").strip()
)

# Connections kept per host by the HTTP adapter
HTTP_POOL_SIZE = int(
    os.environ.get(f"{_DontChangeMe.MAIN_ENV_PREFIX}HTTP_POOL_SIZE", "10").strip()
)

# Default logging level
LOG_LEVEL = os.environ.get(f"{_DontChangeMe.MAIN_ENV_PREFIX}LOG_LEVEL", "INFO").strip()


# =============================================================================
# WIRE CONSTANTS (dictated by the service)
# =============================================================================
SSE_DATA_PREFIX = b"data: "
SSE_DONE = b"[DONE]"

API_KEY_HEADER = "api-key"
AUTHORIZATION_HEADER = "Authorization"
CONTENT_TYPE_JSON = "application/json"
