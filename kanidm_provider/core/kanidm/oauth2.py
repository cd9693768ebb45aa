"""Kanidm OAuth2 client (resource server) operations.

Confidential ("basic") clients carry a server-held secret:

    create_basic_client --> secret generated, fetched with get_basic_secret
    get_basic_secret    --> same value every time, no side effects
    regenerate_basic_secret --> new value, the previous one stops working

Only call ``regenerate_basic_secret`` when rotation is intended.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .client import KanidmClient
from .entry import Entry, attrs_payload
from .exceptions import DecodeError, IncompleteCreateError, KanidmError

logger = logging.getLogger(__name__)

OAUTH2_PATH = "/v1/oauth2"

# Present (with a hidden, empty value) on confidential clients only
BASIC_SECRET_ATTR = "oauth2_rs_basic_secret"


@dataclass
class Oauth2Client:
    """An OAuth2 client.

    ``client_secret`` is never returned by a plain read; it is filled by
    create and the secret endpoints only.
    """
    name: str
    display_name: str = ""
    origin: str = ""
    redirect_uris: List[str] = field(default_factory=list)
    scope_maps: Dict[str, List[str]] = field(default_factory=dict)
    client_secret: str = ""
    is_public: bool = False

    @property
    def client_id(self) -> str:
        return self.name


def normalize_origin(origin: str) -> str:
    """Strip the single trailing slash the server appends to origins."""
    if origin.endswith("/"):
        return origin[:-1]
    return origin


def is_public_entry(entry: Entry) -> bool:
    """Public clients lack the basic-secret attribute.

    The check is on key presence only: confidential clients report the
    attribute with an empty value.
    """
    return not entry.has(BASIC_SECRET_ATTR)


class Oauth2Service:
    """Service for managing Kanidm OAuth2 clients, secrets and scope maps."""

    def __init__(self, client: KanidmClient):
        self.client = client

    def _create_payload(self, name: str, display_name: str, origin: str) -> dict:
        return attrs_payload({
            "name": [name],
            "displayname": [display_name],
            "oauth2_rs_origin_landing": [origin],
        })

    def create_basic_client(self, name: str, display_name: str, origin: str) -> Oauth2Client:
        """Create a confidential client and fetch its generated secret.

        The create response omits the secret, so a follow-up read of the
        secret endpoint is required.

        Raises:
            IncompleteCreateError: The client exists but its secret could not be read
        """
        self.client.post(
            f"{OAUTH2_PATH}/_basic",
            self._create_payload(name, display_name, origin),
            operation="create oauth2 basic client",
        )
        logger.info("Created oauth2 basic client '%s'", name)
        created = Oauth2Client(name=name, display_name=display_name, origin=origin, is_public=False)
        try:
            created.client_secret = self.get_basic_secret(name)
        except KanidmError as exc:
            raise IncompleteCreateError("oauth2 client", name, "retrieve client secret", exc, created) from exc
        return created

    def create_public_client(self, name: str, display_name: str, origin: str) -> Oauth2Client:
        """Create a public client. Public clients have no secret."""
        self.client.post(
            f"{OAUTH2_PATH}/_public",
            self._create_payload(name, display_name, origin),
            operation="create oauth2 public client",
        )
        logger.info("Created oauth2 public client '%s'", name)
        return Oauth2Client(name=name, display_name=display_name, origin=origin, is_public=True)

    def get_client(self, name: str) -> Oauth2Client:
        """Fetch an OAuth2 client.

        The origin comes back without its trailing slash and ``is_public``
        is inferred from the basic-secret attribute key.
        """
        data = self.client.get_json(f"{OAUTH2_PATH}/{name}", operation="get oauth2 client")
        entry = Entry.from_response(data, operation="get oauth2 client")
        client_name = entry.get_string("name") or entry.get_string("oauth2_rs_name")
        return Oauth2Client(
            name=client_name,
            display_name=entry.get_string("displayname"),
            origin=normalize_origin(entry.get_string("oauth2_rs_origin")),
            redirect_uris=entry.get_string_list("oauth2_rs_origin_landing"),
            is_public=is_public_entry(entry),
        )

    def update_client(
        self,
        name: str,
        display_name: str = "",
        origin: str = "",
        redirect_uris: Optional[Iterable[str]] = None,
    ) -> None:
        """Partially update a client; "" and None leave the field unchanged."""
        attrs = {}
        if display_name:
            attrs["displayname"] = [display_name]
        if origin:
            attrs["oauth2_rs_origin"] = [origin]
        if redirect_uris is not None:
            attrs["oauth2_rs_origin_landing"] = list(redirect_uris)
        self.client.patch(f"{OAUTH2_PATH}/{name}", attrs_payload(attrs), operation="update oauth2 client")

    def delete_client(self, name: str) -> None:
        self.client.delete(f"{OAUTH2_PATH}/{name}", operation="delete oauth2 client")
        logger.info("Deleted oauth2 client '%s'", name)

    def get_basic_secret(self, name: str) -> str:
        """Read the current secret of a confidential client (non-destructive)."""
        data = self.client.get_json(
            f"{OAUTH2_PATH}/{name}/_basic_secret",
            operation="get oauth2 basic secret",
        )
        return _secret_value(data, "get oauth2 basic secret")

    def regenerate_basic_secret(self, name: str) -> str:
        """Replace the secret of a confidential client; the old value stops working."""
        data = self.client.post_json(
            f"{OAUTH2_PATH}/{name}/_basic_secret",
            operation="regenerate oauth2 basic secret",
        )
        logger.info("Regenerated secret for oauth2 client '%s'", name)
        return _secret_value(data, "regenerate oauth2 basic secret")

    def set_scope_map(self, name: str, group: str, scopes: Iterable[str]) -> None:
        """Grant ``scopes`` to members of ``group``. The body is a bare JSON list."""
        self.client.post(
            f"{OAUTH2_PATH}/{name}/_scopemap/{group}",
            list(scopes),
            operation="set oauth2 scope map",
        )

    def delete_scope_map(self, name: str, group: str) -> None:
        self.client.delete(f"{OAUTH2_PATH}/{name}/_scopemap/{group}", operation="delete oauth2 scope map")


def _secret_value(data, operation: str) -> str:
    # The secret endpoints answer with a bare JSON string
    if not isinstance(data, str):
        raise DecodeError(f"decode response: expected string secret, got {type(data).__name__}", operation)
    return data
