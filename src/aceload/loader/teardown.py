"""
Teardown: remove every generated record, one parent row per transaction.

Each phase lists all business keys currently stored (not just the ones the
last iteration created) and deletes dependents before the parent row, since
no foreign key cascades.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List

from sqlalchemy.orm import Session, sessionmaker

from aceload.database import run_transaction
from aceload.loader.mutators import find_group_id, find_resource_id, find_user_id
from aceload.models import AccessControlEntry, Group, Resource, User, UserGroup
from aceload.timing import TimingLog

logger = logging.getLogger(__name__)


@dataclass
class TeardownSummary:
    users: int = 0
    groups: int = 0
    resources: int = 0


def find_users(session_factory: sessionmaker) -> List[str]:
    return run_transaction(
        session_factory, lambda session: [uid for (uid,) in session.query(User.uid)]
    )


def find_groups(session_factory: sessionmaker) -> List[str]:
    return run_transaction(
        session_factory, lambda session: [gid for (gid,) in session.query(Group.gid)]
    )


def find_resources(session_factory: sessionmaker) -> List[str]:
    return run_transaction(
        session_factory, lambda session: [rid for (rid,) in session.query(Resource.rid)]
    )


def remove_user(session_factory: sessionmaker, uid: str) -> None:
    def _delete(session: Session) -> None:
        user_id = find_user_id(session, uid)
        session.query(UserGroup).filter(UserGroup.user_id == user_id).delete(
            synchronize_session=False
        )
        session.query(AccessControlEntry).filter(
            AccessControlEntry.user_id == user_id
        ).delete(synchronize_session=False)
        session.query(User).filter(User.id == user_id).delete(synchronize_session=False)

    run_transaction(session_factory, _delete)


def remove_group(session_factory: sessionmaker, gid: str) -> None:
    def _delete(session: Session) -> None:
        group_id = find_group_id(session, gid)
        session.query(UserGroup).filter(UserGroup.group_id == group_id).delete(
            synchronize_session=False
        )
        session.query(AccessControlEntry).filter(
            AccessControlEntry.group_id == group_id
        ).delete(synchronize_session=False)
        session.query(Group).filter(Group.id == group_id).delete(synchronize_session=False)

    run_transaction(session_factory, _delete)


def remove_resource(session_factory: sessionmaker, rid: str) -> None:
    def _delete(session: Session) -> None:
        resource_id = find_resource_id(session, rid)
        session.query(AccessControlEntry).filter(
            AccessControlEntry.resource_id == resource_id
        ).delete(synchronize_session=False)
        session.query(Resource).filter(Resource.id == resource_id).delete(
            synchronize_session=False
        )

    run_transaction(session_factory, _delete)


def _remove_all(
    kind: str,
    keys: List[str],
    remove: Callable[[sessionmaker, str], None],
    session_factory: sessionmaker,
    log: TimingLog,
) -> int:
    for key in keys:
        log.timed_v(f"Remove {kind} {key}", lambda _: remove(session_factory, key))
    return len(keys)


def remove_data(session_factory: sessionmaker, log: TimingLog) -> TeardownSummary:
    """Delete all users, then all groups, then all resources."""
    summary = TeardownSummary()
    summary.users = log.timed_v(
        "Remove users",
        lambda child: _remove_all(
            "user", find_users(session_factory), remove_user, session_factory, child
        ),
    )
    summary.groups = log.timed_v(
        "Remove groups",
        lambda child: _remove_all(
            "group", find_groups(session_factory), remove_group, session_factory, child
        ),
    )
    summary.resources = log.timed_v(
        "Remove resources",
        lambda child: _remove_all(
            "resource",
            find_resources(session_factory),
            remove_resource,
            session_factory,
            child,
        ),
    )
    logger.debug(
        "Removed %s users, %s groups, %s resources",
        summary.users,
        summary.groups,
        summary.resources,
    )
    return summary
