"""Unit tests for group operations."""
import pytest

from kanidm_provider.core.kanidm import GroupService, NotFoundError


@pytest.fixture()
def groups(kanidm_client):
    return GroupService(kanidm_client)


def test_create_omits_empty_description(groups, fake_kanidm):
    groups.create_group("ops")
    assert fake_kanidm.calls_to("POST", "/v1/group")[0].body == {"attrs": {"name": ["ops"]}}


def test_create_with_description(groups, fake_kanidm):
    group = groups.create_group("developers", "Dev team")
    assert group.description == "Dev team"
    assert fake_kanidm.calls_to("POST", "/v1/group")[0].body == {
        "attrs": {"name": ["developers"], "description": ["Dev team"]}
    }


def test_group_without_members_reads_back_empty_list(groups):
    groups.create_group("empty")
    group = groups.get_group("empty")
    assert group.members == []
    assert group.members is not None


def test_developers_scenario(groups):
    groups.create_group("developers", "Dev team")
    groups.add_members("developers", ["alice", "bob"])

    group = groups.get_group("developers")

    assert group.description == "Dev team"
    assert set(group.members) == {"alice", "bob"}
    assert len(group.members) == 2


def test_add_and_remove_members_use_attr_endpoint(groups, fake_kanidm):
    groups.create_group("developers")
    groups.add_members("developers", ["alice", "bob", "carol"])
    groups.remove_members("developers", ["bob"])

    add = fake_kanidm.calls_to("POST", "/v1/group/developers/_attr/member")[0]
    remove = fake_kanidm.calls_to("DELETE", "/v1/group/developers/_attr/member")[0]
    assert add.body == {"attrs": ["alice", "bob", "carol"]}
    assert remove.body == {"attrs": ["bob"]}
    assert sorted(groups.get_group("developers").members) == ["alice", "carol"]


def test_update_members_is_full_replacement(groups, fake_kanidm):
    groups.create_group("developers")
    groups.add_members("developers", ["alice", "bob"])

    groups.update_group("developers", members=["carol"])

    assert groups.get_group("developers").members == ["carol"]


def test_update_with_none_members_leaves_them(groups, fake_kanidm):
    groups.create_group("developers", "Dev team")
    groups.add_members("developers", ["alice"])

    groups.update_group("developers", description="Developers")

    body = fake_kanidm.calls_to("PATCH", "/v1/group/developers")[0].body
    assert body == {"attrs": {"description": ["Developers"]}}
    group = groups.get_group("developers")
    assert group.members == ["alice"]
    assert group.description == "Developers"


def test_update_with_empty_members_sends_empty_list(groups, fake_kanidm):
    groups.create_group("developers")
    groups.update_group("developers", members=[])
    assert fake_kanidm.calls_to("PATCH", "/v1/group/developers")[0].body == {"attrs": {"member": []}}


def test_scalar_member_value_is_wrapped(groups, fake_kanidm):
    fake_kanidm.seed("group", "solo", {"name": "solo", "member": "alice"})
    group = groups.get_group("solo")
    assert group.id == "solo"
    assert group.members == ["alice"]


def test_delete_missing_group(groups):
    with pytest.raises(NotFoundError) as exc_info:
        groups.delete_group("nope")
    assert exc_info.value.operation == "delete group"
