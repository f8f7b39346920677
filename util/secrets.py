"""
Secrets read from the process environment.

Lookups happen at call time so that importing a module never requires
credentials to be present.
"""

import os

READWISE_TOKEN_VAR = "READWISE_TOKEN"
GEMINI_API_KEY_VAR = "GEMINI_API_KEY"


class MissingSecretError(RuntimeError):
    """Raised when a required secret is not configured."""


def get_secret(name: str) -> str:
    value = os.environ.get(name)
    if not value:
        raise MissingSecretError(f"{name} environment variable is not set")
    return value


def get_readwise_token() -> str:
    return get_secret(READWISE_TOKEN_VAR)


def get_gemini_api_key() -> str:
    return get_secret(GEMINI_API_KEY_VAR)
