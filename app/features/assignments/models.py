"""
Association tables for the many-to-many assignment graph.

Each table is a pure edge relation keyed by its foreign-key pair, so the
composite primary key enforces edge uniqueness. Every foreign key cascades on
delete: removing a user, group, role or permission removes all of its edges.
"""
from sqlalchemy import Table, Column, ForeignKey, Integer, DateTime, func

from app.core.database.base import Base


# User-Role relationship (direct role assignment)
user_roles = Table(
    "user_roles",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("role_id", Integer, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True, index=True),
    Column("assigned_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)

# Group-Role relationship (roles inherited by group members)
group_roles = Table(
    "group_roles",
    Base.metadata,
    Column("group_id", Integer, ForeignKey("groups.id", ondelete="CASCADE"), primary_key=True),
    Column("role_id", Integer, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True, index=True),
    Column("assigned_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)

# User-Group membership
user_groups = Table(
    "user_groups",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("group_id", Integer, ForeignKey("groups.id", ondelete="CASCADE"), primary_key=True, index=True),
    Column("assigned_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)

# Role-Permission relationship
role_permissions = Table(
    "role_permissions",
    Base.metadata,
    Column("role_id", Integer, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
    Column("permission_id", Integer, ForeignKey("permissions.id", ondelete="CASCADE"), primary_key=True, index=True),
)
