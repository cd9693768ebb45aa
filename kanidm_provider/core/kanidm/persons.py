"""Kanidm person account operations."""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .client import KanidmClient
from .entry import Entry, attrs_payload, string_field

logger = logging.getLogger(__name__)

PERSON_PATH = "/v1/person"


@dataclass
class Person:
    id: str
    display_name: str = ""
    mail: List[str] = field(default_factory=list)


class PersonService:
    """Service for managing Kanidm person accounts."""

    def __init__(self, client: KanidmClient):
        """Initialize person service.

        Args:
            client: Configured Kanidm client
        """
        self.client = client

    def create_person(self, name: str, display_name: str) -> Person:
        """Create a person account.

        The create response does not echo attributes, so the result is
        built from the inputs.

        Args:
            name: Account name (immutable once created)
            display_name: Display name

        Returns:
            Person with the submitted values and no mail
        """
        payload = attrs_payload({"name": [name], "displayname": [display_name]})
        self.client.post(PERSON_PATH, payload, operation="create person")
        logger.info("Created person '%s'", name)
        return Person(id=name, display_name=display_name)

    def get_person(self, person_id: str) -> Person:
        """Fetch a person account.

        Raises:
            NotFoundError: If the account does not exist
        """
        data = self.client.get_json(f"{PERSON_PATH}/{person_id}", operation="get person")
        entry = Entry.from_response(data, operation="get person")
        return Person(
            id=entry.get_string("name"),
            display_name=entry.get_string("displayname"),
            mail=entry.get_string_list("mail"),
        )

    def update_person(self, person_id: str, display_name: str = "", mail: Optional[List[str]] = None) -> None:
        """Update a person account.

        An empty display name or a None mail list leaves that field unchanged;
        neither clears it.

        Args:
            person_id: Account name
            display_name: New display name, or "" to keep the current one
            mail: Full replacement list of mail addresses, or None to keep them
        """
        attrs = {}
        if display_name:
            attrs["displayname"] = [display_name]
        if mail is not None:
            attrs["mail"] = list(mail)
        self.client.patch(f"{PERSON_PATH}/{person_id}", attrs_payload(attrs), operation="update person")

    def delete_person(self, person_id: str) -> None:
        """Delete a person account.

        Raises:
            NotFoundError: If the account does not exist
        """
        self.client.delete(f"{PERSON_PATH}/{person_id}", operation="delete person")
        logger.info("Deleted person '%s'", person_id)

    def set_password(self, person_id: str, password: str) -> None:
        """Set the account password through the credential update intent endpoint."""
        self.client.post(
            f"{PERSON_PATH}/{person_id}/_credential/_update_intent",
            {"password": password},
            operation="set person password",
        )

    def create_credential_reset_token(self, person_id: str, ttl: Optional[int] = None) -> str:
        """Mint a one-time credential reset token.

        Args:
            person_id: Account name
            ttl: Token lifetime in seconds, or None for the server default

        Returns:
            The token string, verbatim
        """
        path = f"{PERSON_PATH}/{person_id}/_credential/_update_intent"
        if ttl is not None:
            path = f"{path}/{int(ttl)}"
        data = self.client.get_json(path, operation="create credential reset token")
        return string_field(data, "token", "create credential reset token")
