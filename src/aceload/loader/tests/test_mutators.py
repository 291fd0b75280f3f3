import pytest
from sqlalchemy.exc import IntegrityError

from aceload.exceptions import NotFoundError
from aceload.loader.mutators import (
    PLACEHOLDER_DESCRIPTION,
    add_group,
    add_resource,
    add_user,
    add_user_to_group,
    group_resource_name,
    user_resource_name,
)
from aceload.models import Group, Resource, User, UserGroup


def test_add_user_inserts_placeholder_row(session_factory):
    add_user(session_factory, 7)

    session = session_factory()
    try:
        user = session.query(User).filter(User.uid == "7").one()
        assert user.id is not None
        assert user.utype == "regular"
        assert user.is_remote is False
        assert user.description == PLACEHOLDER_DESCRIPTION
        assert user.passwordhash.startswith("$6$rounds=656000$")
    finally:
        session.close()


def test_add_group_and_resource(session_factory):
    add_group(session_factory, 0)
    add_resource(session_factory, user_resource_name(3))

    session = session_factory()
    try:
        assert [g.gid for g in session.query(Group)] == ["0"]
        assert [r.rid for r in session.query(Resource)] == ["user-resource-3"]
    finally:
        session.close()


def test_resource_names_are_tagged_by_origin():
    assert user_resource_name(0) == "user-resource-0"
    assert group_resource_name(12) == "group-resource-12"


def test_duplicate_business_key_is_not_retried(session_factory):
    add_user(session_factory, 1)
    with pytest.raises(IntegrityError):
        add_user(session_factory, 1)

    session = session_factory()
    try:
        assert session.query(User).count() == 1
    finally:
        session.close()


def test_add_user_to_group_links_existing_rows(session_factory):
    add_user(session_factory, 0)
    add_group(session_factory, 0)

    add_user_to_group(session_factory, 0, 0)

    session = session_factory()
    try:
        membership = session.query(UserGroup).one()
        user = session.query(User).filter(User.uid == "0").one()
        group = session.query(Group).filter(Group.gid == "0").one()
        assert (membership.user_id, membership.group_id) == (user.id, group.id)
    finally:
        session.close()


def test_add_user_to_missing_group_fails_without_writing(session_factory):
    add_user(session_factory, 0)

    with pytest.raises(NotFoundError) as excinfo:
        add_user_to_group(session_factory, 4, 0)
    assert excinfo.value.details == {"entity": "group", "key": "4"}

    session = session_factory()
    try:
        assert session.query(UserGroup).count() == 0
    finally:
        session.close()
