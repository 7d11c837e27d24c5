"""
Seed script to populate a sample RBAC dataset.

Creates users, groups, permissions and roles, then wires them together with
role-permission, user-role, user-group and group-role assignments. Nothing is
inserted when the users table already has rows.

Usage:
    python -m scripts.seed_data
"""
import asyncio
from sqlalchemy import func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import AsyncSessionLocal, init_db
from app.features.assignments.models import user_roles, group_roles, user_groups, role_permissions
from app.features.groups.models import Group
from app.features.permissions.models import Permission
from app.features.roles.models import Role
from app.features.users.models import User
from app.utils import get_logger


log = get_logger(__name__)


DEFAULT_USERS = [
    # (username, email, is_active)
    ("admin", "admin@example.com", True),
    ("john.doe", "john.doe@example.com", True),
    ("jane.smith", "jane.smith@example.com", True),
    ("bob.wilson", "bob.wilson@example.com", True),
    ("alice.johnson", "alice.johnson@example.com", False),
]

DEFAULT_GROUPS = [
    ("Engineering", "Engineering Department"),
    ("Sales", "Sales Department"),
    ("HR", "Human Resources Department"),
    ("Management", "Management Team"),
]

DEFAULT_PERMISSIONS = [
    ("user.read", "Read user data"),
    ("user.write", "Create and update users"),
    ("user.delete", "Delete users"),
    ("group.read", "Read group data"),
    ("group.write", "Create and update groups"),
    ("group.delete", "Delete groups"),
    ("role.read", "Read role data"),
    ("role.write", "Create and update roles"),
    ("role.delete", "Delete roles"),
    ("permission.read", "Read permission data"),
    ("permission.write", "Create and update permissions"),
    ("permission.delete", "Delete permissions"),
    ("report.view", "View reports"),
    ("report.export", "Export reports"),
    ("settings.manage", "Manage system settings"),
]

DEFAULT_ROLES = {
    "Super Admin": {
        "description": "Full system access",
        "permissions": "ALL",  # Special case - gets all permissions
    },
    "Admin": {
        "description": "Administrative access",
        "permissions": [
            "user.read", "user.write",
            "group.read", "group.write",
            "role.read", "role.write",
            "report.view", "report.export",
        ],
    },
    "Manager": {
        "description": "Manager access",
        "permissions": ["user.read", "user.write", "group.read", "report.view", "report.export"],
    },
    "User": {
        "description": "Basic user access",
        "permissions": ["user.read", "group.read", "report.view"],
    },
    "Viewer": {
        "description": "Read-only access",
        "permissions": ["user.read", "group.read", "role.read", "permission.read"],
    },
}

USER_ROLES = [
    ("admin", "Super Admin"),
    ("john.doe", "Admin"),
    ("jane.smith", "Manager"),
    ("bob.wilson", "User"),
    ("alice.johnson", "Viewer"),
]

USER_GROUPS = [
    ("admin", "Management"),
    ("john.doe", "Engineering"),
    ("jane.smith", "Sales"),
    ("jane.smith", "Management"),
    ("bob.wilson", "Engineering"),
    ("alice.johnson", "HR"),
]

GROUP_ROLES = [
    ("Engineering", "User"),
    ("Sales", "User"),
    ("HR", "Viewer"),
    ("Management", "Manager"),
]


async def seed_data(db: AsyncSession) -> bool:
    """
    Insert the sample dataset into an empty database.

    Returns:
        True if data was inserted, False if users already existed
    """
    existing_users = (await db.execute(select(func.count()).select_from(User))).scalar()
    if existing_users:
        log.info("Database already seeded, skipping")
        return False

    users = {username: User(username=username, email=email, is_active=active) for username, email, active in DEFAULT_USERS}
    groups = {name: Group(name=name, description=description) for name, description in DEFAULT_GROUPS}
    permissions = {name: Permission(name=name, description=description) for name, description in DEFAULT_PERMISSIONS}
    roles = {name: Role(name=name, description=role_config["description"]) for name, role_config in DEFAULT_ROLES.items()}

    # Added in declaration order so the ids follow the lists above
    for entities in (users, groups, permissions, roles):
        db.add_all(list(entities.values()))
        await db.flush()
    log.info(
        "Created %d users, %d groups, %d permissions and %d roles",
        len(users), len(groups), len(permissions), len(roles),
    )

    role_permission_rows = []
    for role_name, role_config in DEFAULT_ROLES.items():
        names = list(permissions) if role_config["permissions"] == "ALL" else role_config["permissions"]
        role_permission_rows.extend(
            {"role_id": roles[role_name].id, "permission_id": permissions[name].id} for name in names
        )

    await db.execute(insert(role_permissions), role_permission_rows)
    await db.execute(
        insert(user_roles),
        [{"user_id": users[u].id, "role_id": roles[r].id} for u, r in USER_ROLES],
    )
    await db.execute(
        insert(user_groups),
        [{"user_id": users[u].id, "group_id": groups[g].id} for u, g in USER_GROUPS],
    )
    await db.execute(
        insert(group_roles),
        [{"group_id": groups[g].id, "role_id": roles[r].id} for g, r in GROUP_ROLES],
    )
    await db.commit()

    log.info("Sample data seeded successfully")
    return True


async def main():
    """Create tables and seed the sample dataset."""
    log.info("Initializing database tables...")
    await init_db()

    async with AsyncSessionLocal() as db:
        try:
            await seed_data(db)
        except Exception as e:
            log.error("Error seeding data: %s", e, exc_info=True)
            await db.rollback()
            raise


if __name__ == "__main__":
    asyncio.run(main())
