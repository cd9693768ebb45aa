"""
Provisioning Service Layer — Resource Lifecycle Logic

Multi-step flows a declarative caller needs on top of the plain Kanidm
services: create then read back, membership and scope-map reconciliation,
and explicit not-found handling for reads and deletes.

Architecture:
    caller adapter ──> provisioning_service.py ──> kanidm_provider.core.kanidm ──> Kanidm

Nothing here is transactional. When a step after the initial create fails,
IncompleteCreateError is raised: the remote resource exists and the caller
should re-read it to reconcile.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Tuple, TypeVar

from kanidm_provider.core.kanidm import (
    ClientTypeMismatchError,
    Group,
    GroupService,
    IncompleteCreateError,
    KanidmClient,
    KanidmError,
    NotFoundError,
    Oauth2Client,
    Oauth2Service,
    Person,
    PersonService,
    ServiceAccount,
    ServiceAccountService,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ============================================================================
# Read / delete helpers
# ============================================================================

def read_or_none(read: Callable[[str], T], resource_id: str) -> Optional[T]:
    """Call a get_* method, returning None when the resource no longer exists.

    Any other failure propagates.
    """
    try:
        return read(resource_id)
    except NotFoundError:
        logger.info("Resource '%s' not found, treating as removed", resource_id)
        return None


def delete_if_exists(delete: Callable[[str], None], resource_id: str) -> bool:
    """Idempotent delete: returns False instead of raising when already gone."""
    try:
        delete(resource_id)
    except NotFoundError:
        logger.info("Resource '%s' already deleted", resource_id)
        return False
    return True


def _incomplete(resource: str, identifier: str, step: str, exc: KanidmError, partial=None) -> IncompleteCreateError:
    if isinstance(exc, IncompleteCreateError):
        return exc
    return IncompleteCreateError(resource, identifier, step, exc, partial)


# ============================================================================
# Persons
# ============================================================================

@dataclass
class ProvisionedPerson:
    person: Person
    credential_reset_token: str = ""


def provision_person(
    client: KanidmClient,
    name: str,
    display_name: str,
    password: Optional[str] = None,
    mail: Optional[List[str]] = None,
    reset_token_ttl: Optional[int] = None,
    generate_reset_token: bool = False,
) -> ProvisionedPerson:
    """Create a person, apply optional credentials and mail, then read it back.

    Args:
        client: Configured Kanidm client
        name: Account name
        display_name: Display name
        password: Initial password, if any
        mail: Mail addresses to set after creation (empty/None skips the call)
        reset_token_ttl: Lifetime of the reset token in seconds
        generate_reset_token: Mint a credential reset token after creation

    Raises:
        IncompleteCreateError: The account exists but a later step failed
    """
    persons = PersonService(client)
    created = persons.create_person(name, display_name)
    result = ProvisionedPerson(person=created)

    try:
        if password:
            persons.set_password(name, password)
        if generate_reset_token:
            result.credential_reset_token = persons.create_credential_reset_token(name, reset_token_ttl)
        if mail:
            persons.update_person(name, mail=mail)
        result.person = persons.get_person(name)
    except KanidmError as exc:
        raise _incomplete("person", name, exc.operation or "post-create step", exc, result) from exc

    return result


def update_person_resource(
    client: KanidmClient,
    person_id: str,
    display_name: str = "",
    mail: Optional[List[str]] = None,
    password: Optional[str] = None,
    generate_reset_token: bool = False,
    reset_token_ttl: Optional[int] = None,
) -> ProvisionedPerson:
    """Apply changes to an existing person, then read it back.

    The password is sent again whenever one is given, and a fresh reset
    token is minted when requested. Errors propagate unchanged.
    """
    persons = PersonService(client)
    persons.update_person(person_id, display_name, mail)
    result = ProvisionedPerson(person=Person(id=person_id))
    if password:
        persons.set_password(person_id, password)
    if generate_reset_token:
        result.credential_reset_token = persons.create_credential_reset_token(person_id, reset_token_ttl)
    result.person = persons.get_person(person_id)
    return result


# ============================================================================
# Service accounts
# ============================================================================

def provision_service_account(client: KanidmClient, name: str, display_name: str = "") -> ServiceAccount:
    """Create a service account with its initial API token.

    The returned token is the only copy; it cannot be read back later.
    """
    accounts = ServiceAccountService(client)
    account = accounts.create_service_account(name)
    if display_name:
        try:
            accounts.update_service_account(name, display_name)
        except KanidmError as exc:
            raise _incomplete("service account", name, exc.operation or "update", exc, account) from exc
        account.display_name = display_name
    return account


# ============================================================================
# Groups
# ============================================================================

def provision_group(
    client: KanidmClient,
    name: str,
    description: str = "",
    members: Optional[Iterable[str]] = None,
) -> Group:
    """Create a group, set its initial members (full replace), then read it back."""
    groups = GroupService(client)
    groups.create_group(name, description)
    member_list = list(members or [])
    try:
        if member_list:
            groups.update_group(name, members=member_list)
        return groups.get_group(name)
    except KanidmError as exc:
        raise _incomplete("group", name, exc.operation or "post-create step", exc) from exc


def diff_members(current: Iterable[str], desired: Iterable[str]) -> Tuple[List[str], List[str]]:
    """Return (to_add, to_remove), comparing memberships as sets."""
    current_set = set(current)
    desired_set = set(desired)
    return sorted(desired_set - current_set), sorted(current_set - desired_set)


def sync_group_members(client: KanidmClient, group_id: str, desired: Iterable[str]) -> Tuple[List[str], List[str]]:
    """Converge group membership using the incremental add/remove endpoints.

    Only the difference is sent. Do not combine with full-replace updates
    (``GroupService.update_group(members=...)``) on the same group.

    Returns:
        (added, removed) member lists
    """
    groups = GroupService(client)
    current = groups.get_group(group_id).members
    to_add, to_remove = diff_members(current, desired)
    if to_add:
        groups.add_members(group_id, to_add)
    if to_remove:
        groups.remove_members(group_id, to_remove)
    if to_add or to_remove:
        logger.info("Group '%s' membership: +%d -%d", group_id, len(to_add), len(to_remove))
    return to_add, to_remove


# ============================================================================
# OAuth2 clients
# ============================================================================

def diff_scope_maps(
    old: Mapping[str, List[str]],
    new: Mapping[str, List[str]],
) -> Tuple[List[str], Dict[str, List[str]]]:
    """Return (groups_to_delete, maps_to_set).

    Every desired group is set again, each mapping being independent.
    """
    to_delete = sorted(group for group in old if group not in new)
    return to_delete, {group: list(scopes) for group, scopes in new.items()}


def apply_scope_maps(
    client: KanidmClient,
    name: str,
    old: Mapping[str, List[str]],
    new: Mapping[str, List[str]],
) -> None:
    """Delete scope maps no longer desired and set every desired one."""
    oauth2 = Oauth2Service(client)
    to_delete, to_set = diff_scope_maps(old, new)
    for group in to_delete:
        oauth2.delete_scope_map(name, group)
    for group, scopes in to_set.items():
        oauth2.set_scope_map(name, group, scopes)


def provision_oauth2_basic(
    client: KanidmClient,
    name: str,
    display_name: str,
    origin: str,
    redirect_uris: Optional[List[str]] = None,
    scope_maps: Optional[Mapping[str, List[str]]] = None,
) -> Oauth2Client:
    """Create a confidential client, set its origin and redirect URIs, then read it back.

    The returned client keeps the secret fetched at creation and the scope
    maps that were applied.

    Raises:
        IncompleteCreateError: The client exists but a later step failed
    """
    oauth2 = Oauth2Service(client)
    created = oauth2.create_basic_client(name, display_name, origin)
    try:
        # The create call only sets the landing URL; the origin is written here
        oauth2.update_client(name, display_name, origin, redirect_uris)
        if scope_maps:
            apply_scope_maps(client, name, {}, scope_maps)
        current = oauth2.get_client(name)
    except KanidmError as exc:
        raise _incomplete("oauth2 client", name, exc.operation or "post-create step", exc, created) from exc

    current.client_secret = created.client_secret
    current.scope_maps = {group: list(scopes) for group, scopes in (scope_maps or {}).items()}
    return current


def read_oauth2_basic(client: KanidmClient, name: str, known_secret: str = "") -> Oauth2Client:
    """Read a confidential client.

    When no secret is known (e.g. after an import), the current one is
    fetched again with the non-destructive secret read. A failure there is
    logged and the secret is left empty.

    Raises:
        ClientTypeMismatchError: The client exists but is public
    """
    oauth2 = Oauth2Service(client)
    current = oauth2.get_client(name)
    if current.is_public:
        raise ClientTypeMismatchError(
            f"expected OAuth2 basic (confidential) client but '{name}' is a public client",
            "read oauth2 basic client",
        )

    current.client_secret = known_secret
    if not known_secret:
        try:
            current.client_secret = oauth2.get_basic_secret(name)
        except KanidmError as exc:
            logger.warning("Could not recover secret for oauth2 client '%s': %s", name, exc)
    return current


def update_oauth2_basic(
    client: KanidmClient,
    name: str,
    display_name: str = "",
    origin: str = "",
    redirect_uris: Optional[List[str]] = None,
    old_scope_maps: Optional[Mapping[str, List[str]]] = None,
    new_scope_maps: Optional[Mapping[str, List[str]]] = None,
    known_secret: str = "",
) -> Oauth2Client:
    """Patch a confidential client, reconcile its scope maps, then read it back.

    The secret is never rotated here; ``known_secret`` is carried into the
    result.
    """
    oauth2 = Oauth2Service(client)
    oauth2.update_client(name, display_name, origin, redirect_uris)
    new_scope_maps = new_scope_maps or {}
    apply_scope_maps(client, name, old_scope_maps or {}, new_scope_maps)

    current = read_oauth2_basic(client, name, known_secret)
    current.scope_maps = {group: list(scopes) for group, scopes in new_scope_maps.items()}
    return current
