"""Kanidm REST API client library.

This package provides a small, testable interface to Kanidm identity resources.

Architecture:
- client.py: HTTP transport with bearer auth and status classification
- entry.py: Attribute view that normalizes scalar/list attribute values
- persons.py: Person accounts, passwords and credential reset tokens
- service_accounts.py: Service accounts and API tokens
- groups.py: Groups and membership
- oauth2.py: OAuth2 clients, secrets and scope maps
- exceptions.py: Typed exceptions for error handling

Usage:
    from kanidm_provider.core.kanidm import create_client, GroupService

    client = create_client("https://idm.example.com", token)
    groups = GroupService(client)
    groups.create_group("developers", "Dev team")
    groups.add_members("developers", ["alice", "bob"])
"""
from .client import KanidmClient, create_client, REQUEST_TIMEOUT
from .entry import AttrValue, Entry, ValueKind, attrs_payload
from .exceptions import (
    ErrorKind,
    KanidmError,
    KanidmAPIError,
    NotFoundError,
    UnauthorizedError,
    ForbiddenError,
    TransportError,
    DecodeError,
    IncompleteCreateError,
    ClientTypeMismatchError,
)
from .persons import Person, PersonService
from .service_accounts import ServiceAccount, ServiceAccountService, DEFAULT_TOKEN_LABEL
from .groups import Group, GroupService
from .oauth2 import Oauth2Client, Oauth2Service, normalize_origin, is_public_entry

__all__ = [
    # Client
    "KanidmClient",
    "create_client",
    "REQUEST_TIMEOUT",

    # Attributes
    "AttrValue",
    "Entry",
    "ValueKind",
    "attrs_payload",

    # Exceptions
    "ErrorKind",
    "KanidmError",
    "KanidmAPIError",
    "NotFoundError",
    "UnauthorizedError",
    "ForbiddenError",
    "TransportError",
    "DecodeError",
    "IncompleteCreateError",
    "ClientTypeMismatchError",

    # Services
    "Person",
    "PersonService",
    "ServiceAccount",
    "ServiceAccountService",
    "DEFAULT_TOKEN_LABEL",
    "Group",
    "GroupService",
    "Oauth2Client",
    "Oauth2Service",
    "normalize_origin",
    "is_public_entry",
]
