"""Settings loader with explicit values, Docker secrets and environment fallback."""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = Path("/run/secrets") / secret_name

    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
        except OSError as e:
            logger.warning("Failed to read /run/secrets/%s: %s", secret_name, e)
        else:
            if secret_value:
                logger.debug("Loaded %s from /run/secrets", secret_name)
                return secret_value

    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            logger.debug("Loaded %s from environment", env_var)
            return secret_value

    return None


@dataclass
class ClientSettings:
    """Connection settings for the Kanidm API client.

    Attributes:
        base_url: Kanidm server URL, trailing slash is stripped
        token: Bearer token sent on every request
        timeout: Overall per-request timeout in seconds (default 30)
        session: Optional requests.Session used as the HTTP transport
        verify_tls: Verify the server certificate (default True)
    """
    base_url: str
    token: str
    timeout: float = DEFAULT_TIMEOUT
    session: Optional[requests.Session] = None
    verify_tls: bool = True

    def __post_init__(self) -> None:
        self.base_url = (self.base_url or "").rstrip("/")

    def __repr__(self) -> str:
        return f"ClientSettings(base_url={self.base_url!r}, token='***', timeout={self.timeout!r})"


def load_settings(
    url: Optional[str] = None,
    token: Optional[str] = None,
    timeout: Optional[float] = None,
    session: Optional[requests.Session] = None,
    verify_tls: bool = True,
) -> ClientSettings:
    """Resolve client settings from explicit values or the environment.

    Explicit arguments win. Otherwise the URL comes from KANIDM_URL and the
    token from /run/secrets/kanidm_token, then KANIDM_TOKEN. TLS
    certificates are verified unless ``verify_tls`` is False.

    Raises:
        ValueError: If the URL or token is missing or empty, or the timeout is invalid
    """
    resolved_url = url if url is not None else os.environ.get("KANIDM_URL", "")
    resolved_token = token if token is not None else (_load_secret_from_file("kanidm_token", "KANIDM_TOKEN") or "")

    missing = []
    if not resolved_url:
        missing.append(
            "Missing Kanidm URL: set the url value in the configuration or use the KANIDM_URL environment variable."
        )
    if not resolved_token:
        missing.append(
            "Missing Kanidm token: set the token value in the configuration or use the KANIDM_TOKEN environment variable."
        )
    if missing:
        raise ValueError(" ".join(missing))

    if timeout is None:
        raw_timeout = os.environ.get("KANIDM_TIMEOUT")
        try:
            timeout = float(raw_timeout) if raw_timeout else DEFAULT_TIMEOUT
        except ValueError:
            raise ValueError(f"KANIDM_TIMEOUT must be a number of seconds, got {raw_timeout!r}") from None
    if timeout <= 0:
        raise ValueError(f"timeout must be positive, got {timeout!r}")

    return ClientSettings(
        base_url=resolved_url,
        token=resolved_token,
        timeout=timeout,
        session=session,
        verify_tls=verify_tls,
    )
