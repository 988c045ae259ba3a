import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_REDIRECT_URI = 'http://localhost:5000/api/auth/callback'
DEFAULT_AUTHORIZE_URL = 'https://secure.soundcloud.com/authorize'
DEFAULT_TOKEN_URL = 'https://secure.soundcloud.com/oauth/token'
DEFAULT_API_BASE = 'https://api.soundcloud.com'

DEFAULT_PAGE_SIZE = 20
DEFAULT_REVIEW_LIMIT = 3
DEFAULT_REQUEST_TIMEOUT = 30.0

# Upper bound on how long a code verifier may wait for its callback
VERIFIER_TTL_SECONDS = 3600


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")
    if value < 1:
        raise ValueError(f"{name} must be >= 1, got {value}")
    return value


def _timeout_env(name: str, default: float) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    # 0 or "none" disables the timeout
    if raw.strip().lower() in ('0', 'none'):
        return None
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number of seconds, got {raw!r}")


@dataclass
class Settings:
    """Runtime configuration, read from the environment (.env via python-dotenv)"""
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    redirect_uri: str = DEFAULT_REDIRECT_URI
    scope: Optional[str] = None
    authorize_url: str = DEFAULT_AUTHORIZE_URL
    token_url: str = DEFAULT_TOKEN_URL
    api_base: str = DEFAULT_API_BASE
    page_size: int = DEFAULT_PAGE_SIZE
    review_limit: int = DEFAULT_REVIEW_LIMIT
    request_timeout: Optional[float] = DEFAULT_REQUEST_TIMEOUT

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            client_id=os.getenv('SOUNDCLOUD_CLIENT_ID'),
            client_secret=os.getenv('SOUNDCLOUD_CLIENT_SECRET'),
            redirect_uri=os.getenv('SOUNDCLOUD_REDIRECT_URI', DEFAULT_REDIRECT_URI),
            scope=os.getenv('SOUNDCLOUD_SCOPE') or None,
            authorize_url=os.getenv('SOUNDCLOUD_AUTHORIZE_URL', DEFAULT_AUTHORIZE_URL),
            token_url=os.getenv('SOUNDCLOUD_TOKEN_URL', DEFAULT_TOKEN_URL),
            api_base=os.getenv('SOUNDCLOUD_API_BASE', DEFAULT_API_BASE).rstrip('/'),
            page_size=_int_env('SYNC_PAGE_SIZE', DEFAULT_PAGE_SIZE),
            review_limit=_int_env('SYNC_REVIEW_LIMIT', DEFAULT_REVIEW_LIMIT),
            request_timeout=_timeout_env('SOUNDCLOUD_REQUEST_TIMEOUT', DEFAULT_REQUEST_TIMEOUT),
        )

    @property
    def has_credentials(self) -> bool:
        return bool(self.client_id and self.client_secret)
