"""
Single-record writes.

Every function here runs exactly one transaction for one row, mimicking a
non-bulk production API. Surrogate keys are never returned; callers look rows
up again by business key when they need them.
"""

from __future__ import annotations

from sqlalchemy.orm import Session, sessionmaker

from aceload.database import run_transaction
from aceload.exceptions import NotFoundError
from aceload.models import Group, Resource, User, UserGroup, UserType

PLACEHOLDER_DESCRIPTION = "some description"
PLACEHOLDER_PASSWORD_HASH = (
    "$6$rounds=656000$WZdTPdpxUZsDG5PG$6om6ApIm5l5639JNAUmtFD87cIXdWCAVKeJ4z"
    "NlhmPKWT3PARF6Ai.HpcjR8SPQSQnqoefBiLaZmPuMFhGhpm0"
)


def user_key(ordinal: int) -> str:
    return str(ordinal)


def group_key(ordinal: int) -> str:
    return str(ordinal)


def user_resource_name(index: int) -> str:
    return f"user-resource-{index}"


def group_resource_name(index: int) -> str:
    return f"group-resource-{index}"


def find_user_id(session: Session, uid: str) -> int:
    user_id = session.query(User.id).filter(User.uid == uid).scalar()
    if user_id is None:
        raise NotFoundError("user", uid)
    return user_id


def find_group_id(session: Session, gid: str) -> int:
    group_id = session.query(Group.id).filter(Group.gid == gid).scalar()
    if group_id is None:
        raise NotFoundError("group", gid)
    return group_id


def find_resource_id(session: Session, rid: str) -> int:
    resource_id = session.query(Resource.id).filter(Resource.rid == rid).scalar()
    if resource_id is None:
        raise NotFoundError("resource", rid)
    return resource_id


def add_user(session_factory: sessionmaker, ordinal: int) -> None:
    def _insert(session: Session) -> None:
        session.add(
            User(
                uid=user_key(ordinal),
                passwordhash=PLACEHOLDER_PASSWORD_HASH,
                utype=UserType.REGULAR.value,
                description=PLACEHOLDER_DESCRIPTION,
                is_remote=False,
            )
        )
        session.flush()

    run_transaction(session_factory, _insert)


def add_group(session_factory: sessionmaker, ordinal: int) -> None:
    def _insert(session: Session) -> None:
        session.add(Group(gid=group_key(ordinal), description=PLACEHOLDER_DESCRIPTION))
        session.flush()

    run_transaction(session_factory, _insert)


def add_resource(session_factory: sessionmaker, name: str) -> None:
    def _insert(session: Session) -> None:
        session.add(Resource(rid=name, description=PLACEHOLDER_DESCRIPTION))
        session.flush()

    run_transaction(session_factory, _insert)


def add_user_to_group(session_factory: sessionmaker, group: int, user: int) -> None:
    def _insert(session: Session) -> None:
        user_id = find_user_id(session, user_key(user))
        group_id = find_group_id(session, group_key(group))
        session.add(UserGroup(user_id=user_id, group_id=group_id))
        session.flush()

    run_transaction(session_factory, _insert)
