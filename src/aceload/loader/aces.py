"""
Access control entry upserts.

An entry is merged with a read-modify-write inside one transaction: resolve
the resource and principal by business key, read the existing entry for the
pair, then either append the action or insert a fresh row. This is only
correct when the transaction runs under serializable (snapshot) isolation,
so that two grants racing on the same pair cannot both see "no row". The
``user_resource_unique``/``group_resource_unique`` constraints turn a lost
race into an error instead of a duplicate row.
"""

from __future__ import annotations

import enum
from typing import List, Optional

from sqlalchemy.orm import Session, sessionmaker

from aceload.config import get_settings
from aceload.database import run_transaction
from aceload.exceptions import ValidationError
from aceload.loader.mutators import find_group_id, find_resource_id, find_user_id
from aceload.models import AccessControlEntry
from aceload.timing import TimingLog

ACTIONS = ("create", "read", "update", "delete")


class Principal(str, enum.Enum):
    USER = "user"
    GROUP = "group"


def parse_actions(actions: Optional[str]) -> List[str]:
    if not actions:
        return []
    return [a for a in actions.split(",") if a]


def merge_action(
    session: Session,
    principal: Principal,
    principal_key: str,
    resource_key: str,
    action: str,
    *,
    dedupe: bool = False,
    log: Optional[TimingLog] = None,
) -> str:
    """
    Grant ``action`` on ``resource_key`` to the principal within ``session``.

    Returns the entry's resulting action string. With ``dedupe`` an action that
    is already present is left alone; otherwise it is appended again.
    """
    if action not in ACTIONS:
        raise ValidationError(f"Unknown action: {action}", field="action")
    log = log or TimingLog()

    resource_id = log.timed_v(
        f"find resource {resource_key}", lambda _: find_resource_id(session, resource_key)
    )
    if principal is Principal.USER:
        principal_id = log.timed_v(
            f"find user {principal_key}", lambda _: find_user_id(session, principal_key)
        )
        principal_column = AccessControlEntry.user_id
    else:
        principal_id = log.timed_v(
            f"find group {principal_key}", lambda _: find_group_id(session, principal_key)
        )
        principal_column = AccessControlEntry.group_id

    ace = log.timed_v(
        "find ace",
        lambda _: session.query(AccessControlEntry)
        .filter(
            principal_column == principal_id,
            AccessControlEntry.resource_id == resource_id,
        )
        .first(),
    )

    if ace is not None:
        existing = parse_actions(ace.actions)
        if dedupe and action in existing:
            return ace.actions
        actionstr = ",".join(existing + [action])

        def _update(_: TimingLog) -> None:
            ace.actions = actionstr
            session.flush()

        log.timed_v(f"update ace actions={actionstr}", _update)
        return actionstr

    def _insert(_: TimingLog) -> None:
        session.add(
            AccessControlEntry(
                user_id=principal_id if principal is Principal.USER else None,
                group_id=principal_id if principal is Principal.GROUP else None,
                resource_id=resource_id,
                actions=action,
            )
        )
        session.flush()

    log.timed_v(f"insert ace actions={action}", _insert)
    return action


def grant_action(
    session_factory: sessionmaker,
    principal: Principal,
    principal_key: str,
    resource_key: str,
    action: str,
    *,
    dedupe: Optional[bool] = None,
    log: Optional[TimingLog] = None,
) -> str:
    """Merge one action into an entry in its own retryable transaction."""
    if dedupe is None:
        dedupe = get_settings().DEDUPE_ACTIONS
    return run_transaction(
        session_factory,
        lambda session: merge_action(
            session,
            principal,
            principal_key,
            resource_key,
            action,
            dedupe=dedupe,
            log=log,
        ),
    )


def _allow_all_actions(
    session_factory: sessionmaker,
    principal: Principal,
    principal_key: str,
    resource_key: str,
    log: Optional[TimingLog],
) -> None:
    # One transaction per action, as a non-bulk client would issue them.
    for action in ACTIONS:
        grant_action(
            session_factory, principal, principal_key, resource_key, action, log=log
        )


def allow_user_access_to_resource(
    session_factory: sessionmaker,
    resource_key: str,
    uid: str,
    log: Optional[TimingLog] = None,
) -> None:
    _allow_all_actions(session_factory, Principal.USER, uid, resource_key, log)


def allow_group_access_to_resource(
    session_factory: sessionmaker,
    resource_key: str,
    gid: str,
    log: Optional[TimingLog] = None,
) -> None:
    _allow_all_actions(session_factory, Principal.GROUP, gid, resource_key, log)
