"""Low-level HTTP client for the Kanidm REST API.

Handles bearer authentication, status classification and body decoding.
"""
from __future__ import annotations
import json
import logging
from typing import Any, Optional

import requests

from kanidm_provider.config.settings import ClientSettings, DEFAULT_TIMEOUT, load_settings
from .exceptions import (
    STATUS_ERRORS,
    DecodeError,
    KanidmAPIError,
    TransportError,
)

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = DEFAULT_TIMEOUT


class KanidmClient:
    """HTTP client for the Kanidm REST API.

    Every call is a single synchronous attempt: no retries, no backoff.
    Responses are always closed before a method returns, on success
    or failure.

    Usage:
        client = KanidmClient(ClientSettings("https://idm.example.com", token))
        data = client.get_json("/v1/group/developers", operation="get group")
    """

    def __init__(self, settings: ClientSettings):
        """Initialize Kanidm client.

        Args:
            settings: Base URL, bearer token, timeout and optional session
        """
        self.settings = settings
        self.base_url = settings.base_url
        self._session = settings.session or requests.Session()

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.settings.token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def request(self, method: str, path: str, payload: Any = None, operation: Optional[str] = None) -> bytes:
        """Execute a request and return the raw response body.

        Args:
            method: HTTP method
            path: API path (e.g. "/v1/person/alice")
            payload: JSON-serializable body; None sends an empty body
            operation: Operation name attached to any raised error

        Returns:
            Response body bytes (empty for bodiless responses)

        Raises:
            NotFoundError, UnauthorizedError, ForbiddenError: On 404/401/403
            KanidmAPIError: On any other non-2xx status
            TransportError: On network or serialization failure
        """
        url = f"{self.base_url}{path}"
        data = b""
        if payload is not None:
            try:
                data = json.dumps(payload).encode("utf-8")
            except (TypeError, ValueError) as exc:
                raise TransportError(f"marshal request body: {exc}", operation) from exc

        try:
            resp = self._session.request(
                method,
                url,
                data=data,
                headers=self._headers(),
                timeout=self.settings.timeout,
                verify=self.settings.verify_tls,
            )
        except requests.RequestException as exc:
            raise TransportError(f"execute request: {exc}", operation) from exc

        try:
            logger.debug("%s %s -> %s", method, path, resp.status_code)
            self._handle_error(resp, operation)
            return resp.content or b""
        finally:
            resp.close()

    def _handle_error(self, resp: requests.Response, operation: Optional[str]) -> None:
        """Centralized status classification for HTTP responses.

        Raises:
            KanidmAPIError (or a status-specific subclass) for non-2xx responses
        """
        if 200 <= resp.status_code < 300:
            return
        error_cls = STATUS_ERRORS.get(resp.status_code, KanidmAPIError)
        body = resp.text if error_cls is KanidmAPIError else ""
        raise error_cls(resp.status_code, (body or "").strip(), resp.url or "", operation)

    @staticmethod
    def decode(body: bytes, operation: Optional[str] = None) -> Any:
        """Decode a JSON response body.

        Raises:
            DecodeError: If the body is empty or not valid JSON
        """
        try:
            return json.loads(body)
        except ValueError as exc:
            raise DecodeError(f"decode response: {exc}", operation) from exc

    def get_json(self, path: str, operation: Optional[str] = None) -> Any:
        """GET a path and decode the JSON body."""
        return self.decode(self.request("GET", path, operation=operation), operation)

    def post_json(self, path: str, payload: Any = None, operation: Optional[str] = None) -> Any:
        """POST a payload and decode the JSON body."""
        return self.decode(self.request("POST", path, payload, operation=operation), operation)

    def get(self, path: str, operation: Optional[str] = None) -> bytes:
        return self.request("GET", path, operation=operation)

    def post(self, path: str, payload: Any = None, operation: Optional[str] = None) -> bytes:
        return self.request("POST", path, payload, operation=operation)

    def patch(self, path: str, payload: Any = None, operation: Optional[str] = None) -> bytes:
        return self.request("PATCH", path, payload, operation=operation)

    def delete(self, path: str, payload: Any = None, operation: Optional[str] = None) -> bytes:
        return self.request("DELETE", path, payload, operation=operation)

    def close(self) -> None:
        """Close the underlying session if this client created it."""
        if self.settings.session is None:
            self._session.close()

    def __enter__(self) -> "KanidmClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def create_client(url: Optional[str] = None, token: Optional[str] = None, **kwargs) -> KanidmClient:
    """Build a client from explicit values or KANIDM_URL / KANIDM_TOKEN.

    Args:
        url: Kanidm server URL (defaults to KANIDM_URL)
        token: API token (defaults to /run/secrets/kanidm_token, then KANIDM_TOKEN)
        **kwargs: Passed through to load_settings (timeout, session, verify_tls)
    """
    return KanidmClient(load_settings(url=url, token=token, **kwargs))
