"""
Round trip against a real store; collected only with ACELOAD_PYTEST_DB=1.

Uses the connection settings from the ACELOAD_* environment.
"""

import pytest

from aceload.database import create_db_engine, create_session_factory, init_db
from aceload.loader import IterationDriver, RecordCount
from aceload.loader.aces import Principal, grant_action
from aceload.loader.mutators import add_resource, add_user
from aceload.models import AccessControlEntry, Group, Resource, User, UserGroup
from aceload.timing import TimingLog

pytestmark = pytest.mark.requires_db


@pytest.fixture()
def live_session_factory():
    engine = create_db_engine()
    init_db(engine)
    try:
        yield create_session_factory(engine)
    finally:
        engine.dispose()


def test_live_round_trip(live_session_factory):
    counts = RecordCount(users=2, groups=1, members=1, user_permissions=1, group_permissions=1)

    assert IterationDriver(live_session_factory, TimingLog(verbose=True)).run_with_counts(counts)

    session = live_session_factory()
    try:
        for model in (User, Group, UserGroup, Resource, AccessControlEntry):
            assert session.query(model).count() == 0
    finally:
        session.close()


def test_live_merge_keeps_one_entry(live_session_factory):
    add_user(live_session_factory, 0)
    add_resource(live_session_factory, "user-resource-0")
    grant_action(live_session_factory, Principal.USER, "0", "user-resource-0", "create")
    grant_action(live_session_factory, Principal.USER, "0", "user-resource-0", "read")

    session = live_session_factory()
    try:
        assert [a.actions for a in session.query(AccessControlEntry)] == ["create,read"]
    finally:
        session.close()
