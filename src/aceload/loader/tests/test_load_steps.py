import pytest

from aceload.exceptions import ValidationError
from aceload.loader.counts import RecordCount
from aceload.loader.registry import LoadStepRegistry
from aceload.loader.steps import (
    AddGroups,
    AddUsers,
    AssignGroupPermissions,
    AssignUserPermissions,
    AssignUsersToGroups,
    prepare_data,
)
from aceload.models import AccessControlEntry, Group, Resource, User, UserGroup
from aceload.timing import TimingLog


def test_steps_run_in_dependency_order():
    assert LoadStepRegistry.ordered() == [
        AddUsers,
        AddGroups,
        AssignUsersToGroups,
        AssignUserPermissions,
        AssignGroupPermissions,
    ]


def test_three_users_get_ordinal_keys(session_factory):
    prepare_data(session_factory, RecordCount(users=3), TimingLog())

    session = session_factory()
    try:
        assert sorted(uid for (uid,) in session.query(User.uid)) == ["0", "1", "2"]
        assert session.query(Group).count() == 0
        assert session.query(AccessControlEntry).count() == 0
    finally:
        session.close()


def test_memberships_share_one_round_robin_counter(session_factory):
    prepare_data(session_factory, RecordCount(users=3, groups=2, members=2), TimingLog())

    session = session_factory()
    try:
        pairs = sorted(
            (gid, uid)
            for gid, uid in session.query(Group.gid, User.uid)
            .select_from(UserGroup)
            .join(Group, Group.id == UserGroup.group_id)
            .join(User, User.id == UserGroup.user_id)
        )
    finally:
        session.close()
    assert pairs == [("0", "0"), ("0", "1"), ("1", "0"), ("1", "2")]


def test_permissions_grant_every_action_once_per_pair(session_factory):
    counts = RecordCount(
        users=2, groups=1, members=1, user_permissions=1, group_permissions=2
    )
    prepare_data(session_factory, counts, TimingLog(verbose=True))

    session = session_factory()
    try:
        assert sorted(rid for (rid,) in session.query(Resource.rid)) == [
            "group-resource-0",
            "group-resource-1",
            "user-resource-0",
        ]
        aces = session.query(AccessControlEntry).all()
        assert len(aces) == 2 + 2
        assert {ace.actions for ace in aces} == {"create,read,update,delete"}
        assert sum(1 for ace in aces if ace.user_id is not None) == 2
        assert sum(1 for ace in aces if ace.group_id is not None) == 2
    finally:
        session.close()


def test_insane_counts_are_refused_before_any_write(session_factory):
    with pytest.raises(ValidationError):
        prepare_data(session_factory, RecordCount(groups=1, members=1), TimingLog())

    session = session_factory()
    try:
        assert session.query(Group).count() == 0
    finally:
        session.close()
