import json

import pytest
from sqlalchemy import insert

from app.core.exceptions import NotFoundError
from app.features.assignments.models import user_roles
from app.features.permissions.resolver import PermissionResolver
from app.features.users.models import User


pytestmark = pytest.mark.usefixtures("seeded")


MANAGER_PERMISSIONS = ["group.read", "report.export", "report.view", "user.read", "user.write"]


async def test_resolves_direct_and_group_permissions(db, cache, keys):
    permissions = await PermissionResolver(db, cache, keys).resolve(3)

    assert permissions.user_id == 3
    assert permissions.username == "jane.smith"
    assert permissions.direct_permissions == MANAGER_PERMISSIONS
    assert permissions.group_inherited_permissions == MANAGER_PERMISSIONS
    assert permissions.all_permissions == MANAGER_PERMISSIONS


async def test_all_permissions_is_sorted_union(db, cache, keys):
    # admin: Super Admin directly, Manager through Management
    permissions = await PermissionResolver(db, cache, keys).resolve(1)

    assert len(permissions.direct_permissions) == 15
    assert permissions.group_inherited_permissions == MANAGER_PERMISSIONS
    assert permissions.all_permissions == sorted(permissions.direct_permissions)


async def test_union_of_disjoint_sources(db, cache, keys):
    # bob.wilson gets Viewer directly on top of User from his role and Engineering
    await db.execute(insert(user_roles).values(user_id=4, role_id=5))
    await db.commit()

    permissions = await PermissionResolver(db, cache, keys).resolve(4)

    assert permissions.direct_permissions == ["group.read", "permission.read", "report.view", "role.read", "user.read"]
    assert permissions.group_inherited_permissions == ["group.read", "report.view", "user.read"]
    assert permissions.all_permissions == ["group.read", "permission.read", "report.view", "role.read", "user.read"]


async def test_inactive_user_still_resolves(db, cache, keys):
    permissions = await PermissionResolver(db, cache, keys).resolve(5)

    assert permissions.all_permissions == ["group.read", "permission.read", "role.read", "user.read"]


async def test_user_without_assignments_has_no_permissions(db, cache, keys):
    user = User(username="new.user", email="new.user@example.com")
    db.add(user)
    await db.commit()

    permissions = await PermissionResolver(db, cache, keys).resolve(user.id)

    assert permissions.direct_permissions == []
    assert permissions.group_inherited_permissions == []
    assert permissions.all_permissions == []


async def test_unknown_user_raises_not_found(db, cache, keys, fake_redis):
    with pytest.raises(NotFoundError) as exc_info:
        await PermissionResolver(db, cache, keys).resolve(999)

    assert exc_info.value.detail == "User 999 not found"
    assert keys.user_permissions(999) not in fake_redis.store


async def test_result_is_cached_with_permissions_ttl(db, cache, keys, fake_redis):
    await PermissionResolver(db, cache, keys).resolve(3)

    assert json.loads(fake_redis.store["user:permissions:3"])["all_permissions"] == MANAGER_PERMISSIONS
    assert fake_redis.ttls["user:permissions:3"] == 900


async def test_cache_hit_skips_store(db, cache, keys, fake_redis):
    fake_redis.store["user:permissions:3"] = json.dumps({
        "user_id": 3,
        "username": "jane.smith",
        "direct_permissions": [],
        "group_inherited_permissions": [],
        "all_permissions": ["cached.only"],
    })

    permissions = await PermissionResolver(db, cache, keys).resolve(3)

    assert permissions.all_permissions == ["cached.only"]


async def test_malformed_cache_entry_is_recomputed(db, cache, keys, fake_redis):
    fake_redis.store["user:permissions:3"] = json.dumps({"unexpected": True})

    permissions = await PermissionResolver(db, cache, keys).resolve(3)

    assert permissions.all_permissions == MANAGER_PERMISSIONS
    assert json.loads(fake_redis.store["user:permissions:3"])["username"] == "jane.smith"


async def test_resolves_when_cache_is_down(db, failing_cache, keys, failing_redis):
    permissions = await PermissionResolver(db, failing_cache, keys).resolve(3)

    assert permissions.all_permissions == MANAGER_PERMISSIONS
    assert failing_redis.calls == 2  # one read, one write


async def test_invalidate_all_keeps_entity_entries(db, cache, keys, fake_redis):
    resolver = PermissionResolver(db, cache, keys)
    await resolver.resolve(1)
    await resolver.resolve(3)
    fake_redis.store["user:1"] = "{}"

    await resolver.invalidate_all()

    assert "user:permissions:1" not in fake_redis.store
    assert "user:permissions:3" not in fake_redis.store
    assert "user:1" in fake_redis.store
