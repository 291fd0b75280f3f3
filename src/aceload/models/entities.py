"""
Access-control tables exercised by the load generator.

Dependent rows (memberships, access control entries) carry plain foreign keys
without ``ON DELETE CASCADE``: teardown deletes them explicitly before their
parents.
"""

from __future__ import annotations

import enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)

from aceload.models.base import Base


class UserType(str, enum.Enum):
    REGULAR = "regular"
    SERVICE = "service"


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("utype IN ('regular', 'service')", name="usertype"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    uid = Column(String(64), unique=True, index=True)
    passwordhash = Column(String(200))
    utype = Column(String(7))
    description = Column(Text)
    is_remote = Column(Boolean)


class Group(Base):
    __tablename__ = "groups"

    id = Column(Integer, primary_key=True, autoincrement=True)
    gid = Column(String(64), unique=True, index=True)
    description = Column(Text)


class UserGroup(Base):
    __tablename__ = "user_groups"

    user_id = Column(Integer, ForeignKey("users.id"), primary_key=True)
    group_id = Column(Integer, ForeignKey("groups.id"), primary_key=True, index=True)


class Resource(Base):
    __tablename__ = "resources"

    id = Column(Integer, primary_key=True, autoincrement=True)
    rid = Column(String(200), unique=True, index=True)
    description = Column(Text)


class AccessControlEntry(Base):
    """Grants a comma-joined set of actions from one user or group to one resource."""

    __tablename__ = "aces"
    __table_args__ = (
        UniqueConstraint("user_id", "resource_id", name="user_resource_unique"),
        UniqueConstraint("group_id", "resource_id", name="group_resource_unique"),
        CheckConstraint(
            "(user_id IS NULL) <> (group_id IS NULL)", name="ace_single_principal"
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    group_id = Column(Integer, ForeignKey("groups.id"), nullable=True)
    resource_id = Column(Integer, ForeignKey("resources.id"), nullable=True, index=True)
    actions = Column(Text)


class Config(Base):
    __tablename__ = "configs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    key = Column(String(200), unique=True)
    value = Column(Text)
