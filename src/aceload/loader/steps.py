"""
Load steps, registered in dependency order, and the entry point that runs them.

Records are added singly to simulate loading through a non-bulk interface.
"""

from __future__ import annotations

from sqlalchemy.orm import sessionmaker

from aceload.exceptions import ValidationError
from aceload.loader.aces import (
    allow_group_access_to_resource,
    allow_user_access_to_resource,
)
from aceload.loader.base import BaseLoadStep
from aceload.loader.counts import RecordCount
from aceload.loader.mutators import (
    add_group,
    add_resource,
    add_user,
    add_user_to_group,
    group_key,
    group_resource_name,
    user_key,
    user_resource_name,
)
from aceload.loader.registry import LoadStepRegistry
from aceload.timing import TimingLog


@LoadStepRegistry.register
class AddUsers(BaseLoadStep):
    priority = 10
    label = "Add users"

    def run(self):
        for ii in range(self.counts.users):
            self.timed(f"Add user {ii}", lambda: add_user(self.session_factory, ii))


@LoadStepRegistry.register
class AddGroups(BaseLoadStep):
    priority = 20
    label = "Add groups"

    def run(self):
        for ii in range(self.counts.groups):
            self.timed(f"Add group {ii}", lambda: add_group(self.session_factory, ii))


@LoadStepRegistry.register
class AssignUsersToGroups(BaseLoadStep):
    """
    Fill every group's member slots from one shared round-robin over users.

    The user counter carries over between groups, so with 3 users and 2 groups
    of 2 members the groups receive users (0, 1) and (2, 0).
    """

    priority = 30
    label = "Assign users to groups"

    def run(self):
        users = self.counts.users
        user = 0
        for group in range(self.counts.groups):
            for _ in range(self.counts.members):
                self.timed(
                    f"Add user {user} to group {group}",
                    lambda: add_user_to_group(self.session_factory, group, user),
                )
                user = (user + 1) % users


@LoadStepRegistry.register
class AssignUserPermissions(BaseLoadStep):
    priority = 40
    label = "Assign user permissions"

    def run(self):
        for permission in range(self.counts.user_permissions):
            resource = user_resource_name(permission)
            self.timed(
                f"Add resource {resource}",
                lambda: add_resource(self.session_factory, resource),
            )
            for user in range(self.counts.users):
                self.log.timed_v(
                    f"Allow {resource} to user {user}",
                    lambda child: allow_user_access_to_resource(
                        self.session_factory, resource, user_key(user), log=child
                    ),
                )


@LoadStepRegistry.register
class AssignGroupPermissions(BaseLoadStep):
    priority = 50
    label = "Assign group permissions"

    def run(self):
        for permission in range(self.counts.group_permissions):
            resource = group_resource_name(permission)
            self.timed(
                f"Add resource {resource}",
                lambda: add_resource(self.session_factory, resource),
            )
            for group in range(self.counts.groups):
                self.log.timed_v(
                    f"Allow {resource} to group {group}",
                    lambda child: allow_group_access_to_resource(
                        self.session_factory, resource, group_key(group), log=child
                    ),
                )


def prepare_data(session_factory: sessionmaker, counts: RecordCount, log: TimingLog) -> None:
    if not counts.is_sane():
        raise ValidationError(f"Record count is not sane: {counts}", field="counts")
    LoadStepRegistry.run_all(session_factory, counts, log)
