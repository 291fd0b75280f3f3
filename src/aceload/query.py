"""
Read workload: look up the resources and entries granted to a random user.

Meant to run against a store being loaded by ``aceload load`` so that the
join's latency can be watched while indexes are tuned.
"""

from __future__ import annotations

import itertools
import logging
import random
import threading
import time
from typing import List, Optional

from sqlalchemy.orm import Session, sessionmaker

from aceload.database import run_transaction
from aceload.models import AccessControlEntry, Resource, User
from aceload.timing import TimingLog

logger = logging.getLogger(__name__)


def list_user_ids(session: Session) -> List[str]:
    return [uid for (uid,) in session.query(User.uid)]


def query_user_grants(session: Session, uid: str) -> int:
    """Run the grants join for ``uid`` and drain all rows; returns the row count."""
    rows = (
        session.query(
            Resource.id,
            Resource.rid,
            Resource.description,
            AccessControlEntry.actions,
            AccessControlEntry.id,
            AccessControlEntry.user_id,
            AccessControlEntry.group_id,
            AccessControlEntry.resource_id,
        )
        .select_from(AccessControlEntry)
        .join(User, User.id == AccessControlEntry.user_id)
        .join(Resource, Resource.id == AccessControlEntry.resource_id)
        .filter(User.uid == uid)
    )
    # The rows themselves are ignored; iterating makes sure every result is fetched.
    return sum(1 for _ in rows)


def perform_queries(
    session_factory: sessionmaker,
    log: Optional[TimingLog] = None,
    *,
    max_queries: Optional[int] = None,
    stop_event: Optional[threading.Event] = None,
    rng: Optional[random.Random] = None,
) -> int:
    """
    Repeatedly query a random user's grants and log the time between queries.

    Attempts that find no users count towards ``max_queries`` but are not
    timed. Returns the number of timed queries.
    """
    log = log or TimingLog()
    rng = rng or random.Random()
    timed = 0
    started = time.perf_counter()
    for attempt in itertools.count():
        if max_queries is not None and attempt >= max_queries:
            break
        if stop_event is not None and stop_event.is_set():
            break

        uids = run_transaction(session_factory, list_user_ids)
        if not uids:
            logger.debug("No users loaded yet")
            continue
        uid = rng.choice(uids)
        run_transaction(session_factory, lambda session: query_user_grants(session, uid))

        now = time.perf_counter()
        timed += 1
        log.say("Query %d took %.3fs", timed, now - started)
        started = now
    return timed
