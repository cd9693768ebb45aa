"""Kanidm service account operations."""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Optional

from .client import KanidmClient
from .entry import Entry, attrs_payload, string_field
from .exceptions import IncompleteCreateError, KanidmError

logger = logging.getLogger(__name__)

SERVICE_ACCOUNT_PATH = "/v1/service_account"
DEFAULT_TOKEN_LABEL = "terraform-managed"


@dataclass
class ServiceAccount:
    """A service account.

    ``api_token`` is only populated by create (and explicit re-mints);
    the server never returns it again.
    """
    id: str
    display_name: str = ""
    api_token: str = ""


class ServiceAccountService:
    """Service for managing Kanidm service accounts and their API tokens."""

    def __init__(self, client: KanidmClient):
        self.client = client

    def create_service_account(self, name: str, token_label: str = DEFAULT_TOKEN_LABEL) -> ServiceAccount:
        """Create a service account and mint its initial API token.

        Args:
            name: Account name (immutable once created)
            token_label: Label for the initial API token

        Returns:
            ServiceAccount carrying the freshly minted token

        Raises:
            IncompleteCreateError: The account exists but the token could not be minted
        """
        self.client.post(
            SERVICE_ACCOUNT_PATH,
            attrs_payload({"name": [name]}),
            operation="create service account",
        )
        logger.info("Created service account '%s'", name)
        account = ServiceAccount(id=name)
        try:
            account.api_token = self.generate_api_token(name, token_label)
        except KanidmError as exc:
            raise IncompleteCreateError("service account", name, "generate initial token", exc, account) from exc
        return account

    def get_service_account(self, account_id: str) -> ServiceAccount:
        """Fetch a service account. The API token is never part of the response."""
        data = self.client.get_json(f"{SERVICE_ACCOUNT_PATH}/{account_id}", operation="get service account")
        entry = Entry.from_response(data, operation="get service account")
        return ServiceAccount(id=entry.get_string("name"), display_name=entry.get_string("displayname"))

    def update_service_account(self, account_id: str, display_name: str = "") -> None:
        """Update a service account; an empty display name leaves it unchanged."""
        attrs = {}
        if display_name:
            attrs["displayname"] = [display_name]
        self.client.patch(
            f"{SERVICE_ACCOUNT_PATH}/{account_id}",
            attrs_payload(attrs),
            operation="update service account",
        )

    def delete_service_account(self, account_id: str) -> None:
        self.client.delete(f"{SERVICE_ACCOUNT_PATH}/{account_id}", operation="delete service account")
        logger.info("Deleted service account '%s'", account_id)

    def generate_api_token(self, account_id: str, label: str, expiry: Optional[int] = None) -> str:
        """Mint a new API token.

        Args:
            account_id: Account name
            label: Token label
            expiry: Expiry as a unix timestamp, or None for no expiry

        Returns:
            The new token. Earlier tokens stay valid unless the server revokes them.
        """
        data = self.client.post_json(
            f"{SERVICE_ACCOUNT_PATH}/{account_id}/_api_token",
            {"label": label, "expiry": expiry},
            operation="generate api token",
        )
        return string_field(data, "token", "generate api token")
