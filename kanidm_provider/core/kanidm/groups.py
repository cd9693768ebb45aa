"""Kanidm group management operations.

Membership can be changed two ways: ``update_group`` replaces the whole
member set, ``add_members``/``remove_members`` patch it incrementally.
Callers must stick to one strategy per group; mixing them concurrently
against the same group is not coordinated here.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from .client import KanidmClient
from .entry import Entry, attrs_payload

logger = logging.getLogger(__name__)

GROUP_PATH = "/v1/group"


@dataclass
class Group:
    id: str
    description: str = ""
    members: List[str] = field(default_factory=list)


class GroupService:
    """Service for managing Kanidm groups."""

    def __init__(self, client: KanidmClient):
        """Initialize group service.

        Args:
            client: Configured Kanidm client
        """
        self.client = client

    def create_group(self, name: str, description: str = "") -> Group:
        """Create a group.

        An empty description is left out of the payload entirely.

        Args:
            name: Group name (immutable once created)
            description: Optional description

        Returns:
            Group with the submitted values and no members
        """
        attrs = {"name": [name]}
        if description:
            attrs["description"] = [description]
        self.client.post(GROUP_PATH, attrs_payload(attrs), operation="create group")
        logger.info("Created group '%s'", name)
        return Group(id=name, description=description)

    def get_group(self, group_id: str) -> Group:
        """Fetch a group. ``members`` is [] when the group has none, never None."""
        data = self.client.get_json(f"{GROUP_PATH}/{group_id}", operation="get group")
        entry = Entry.from_response(data, operation="get group")
        return Group(
            id=entry.get_string("name"),
            description=entry.get_string("description"),
            members=entry.get_string_list("member"),
        )

    def update_group(self, group_id: str, description: str = "", members: Optional[Iterable[str]] = None) -> None:
        """Update a group.

        Args:
            group_id: Group name
            description: New description, or "" to keep the current one
            members: Complete replacement member set, or None to keep it
        """
        attrs = {}
        if description:
            attrs["description"] = [description]
        if members is not None:
            attrs["member"] = list(members)
        self.client.patch(f"{GROUP_PATH}/{group_id}", attrs_payload(attrs), operation="update group")

    def delete_group(self, group_id: str) -> None:
        self.client.delete(f"{GROUP_PATH}/{group_id}", operation="delete group")
        logger.info("Deleted group '%s'", group_id)

    def add_members(self, group_id: str, member_ids: Iterable[str]) -> None:
        """Add members through the attribute endpoint, keeping existing ones."""
        self.client.post(
            f"{GROUP_PATH}/{group_id}/_attr/member",
            {"attrs": list(member_ids)},
            operation="add group members",
        )

    def remove_members(self, group_id: str, member_ids: Iterable[str]) -> None:
        """Remove members through the attribute endpoint, keeping the rest."""
        self.client.delete(
            f"{GROUP_PATH}/{group_id}/_attr/member",
            {"attrs": list(member_ids)},
            operation="remove group members",
        )
