import json

import pytest
from sqlalchemy import func, select

from app.features.assignments.models import user_groups, user_roles


pytestmark = pytest.mark.usefixtures("seeded")


async def test_list_users_paginates(client):
    response = await client.get("/api/users", params={"page_number": 2, "page_size": 2})

    assert response.status_code == 200
    body = response.json()
    assert [user["username"] for user in body["items"]] == ["jane.smith", "bob.wilson"]
    assert body["metadata"] == {
        "current_page": 2,
        "page_size": 2,
        "total_count": 5,
        "total_pages": 3,
        "has_previous": True,
        "has_next": True,
    }


async def test_page_size_is_capped(client):
    response = await client.get("/api/permissions", params={"page_size": 500})

    metadata = response.json()["metadata"]
    assert metadata["page_size"] == 100
    assert metadata["total_count"] == 15
    assert metadata["has_next"] is False


async def test_list_users_filters(client):
    response = await client.get("/api/users", params={"username": "smith"})
    assert [user["id"] for user in response.json()["items"]] == [3]

    response = await client.get("/api/users", params={"is_active": "false"})
    assert [user["username"] for user in response.json()["items"]] == ["alice.johnson"]


async def test_create_and_get_user(client, fake_redis):
    response = await client.post("/api/users", json={"username": "carol.white", "email": "carol@example.com"})

    assert response.status_code == 201
    user = response.json()
    assert user["is_active"] is True
    assert json.loads(fake_redis.store[f"user:{user['id']}"])["username"] == "carol.white"

    response = await client.get(f"/api/users/{user['id']}")
    assert response.status_code == 200
    assert response.json()["email"] == "carol@example.com"


async def test_duplicate_username_is_rejected(client):
    response = await client.post("/api/users", json={"username": "admin", "email": "other@example.com"})

    assert response.status_code == 400
    assert response.json() == {"detail": "User with this username or email already exists"}


async def test_invalid_user_payload(client):
    response = await client.post("/api/users", json={"username": "bad name", "email": "not-an-email"})

    assert response.status_code == 400
    assert set(response.json()) == {"username", "email"}


async def test_get_unknown_user(client):
    response = await client.get("/api/users/99")

    assert response.status_code == 404
    assert response.json() == {"detail": "User 99 not found"}


async def test_update_user_invalidates_cached_entries(client, fake_redis):
    await client.get("/api/users/3")
    await client.get("/api/users/3/permissions")

    response = await client.put("/api/users/3", json={"username": "jane.doe"})

    assert response.status_code == 200
    assert response.json()["username"] == "jane.doe"
    assert "user:3" not in fake_redis.store
    assert "user:permissions:3" not in fake_redis.store
    response = await client.get("/api/users/3/permissions")
    assert response.json()["username"] == "jane.doe"


async def test_delete_user_cascades(client, session_factory, fake_redis):
    await client.get("/api/users/3/permissions")

    response = await client.delete("/api/users/3")

    assert response.status_code == 204
    assert "user:permissions:3" not in fake_redis.store
    assert (await client.get("/api/users/3")).status_code == 404
    async with session_factory() as session:
        for table in (user_roles, user_groups):
            count = await session.execute(select(func.count()).select_from(table).where(table.c.user_id == 3))
            assert count.scalar() == 0


async def test_get_role_embeds_permissions(client, fake_redis):
    response = await client.get("/api/roles/4")

    assert response.status_code == 200
    role = response.json()
    assert role["name"] == "User"
    assert [p["name"] for p in role["permissions"]] == ["group.read", "report.view", "user.read"]
    assert fake_redis.ttls["role:4"] == 600


async def test_role_crud(client):
    response = await client.post("/api/roles", json={"name": "Auditor", "description": "Audit access"})
    assert response.status_code == 201
    role_id = response.json()["id"]
    assert response.json()["permissions"] == []

    response = await client.post("/api/roles", json={"name": "Auditor"})
    assert response.status_code == 400

    response = await client.put(f"/api/roles/{role_id}", json={"description": None})
    assert response.status_code == 200
    assert response.json()["description"] is None
    assert response.json()["name"] == "Auditor"

    assert (await client.delete(f"/api/roles/{role_id}")).status_code == 204
    assert (await client.delete(f"/api/roles/{role_id}")).status_code == 404


async def test_permission_rename_drops_cached_roles(client, fake_redis):
    await client.get("/api/roles/4")
    await client.get("/api/users/4/permissions")

    response = await client.put("/api/permissions/13", json={"name": "report.read"})

    assert response.status_code == 200
    assert "role:4" not in fake_redis.store
    assert "user:permissions:4" not in fake_redis.store
    response = await client.get("/api/users/4/permissions")
    assert "report.read" in response.json()["all_permissions"]


async def test_permission_description_change_drops_cached_roles(client, fake_redis):
    await client.get("/api/roles/3")

    response = await client.put("/api/permissions/1", json={"description": "Read user profiles"})

    assert response.status_code == 200
    assert "role:3" not in fake_redis.store
    response = await client.get("/api/roles/3")
    permission = next(p for p in response.json()["permissions"] if p["id"] == 1)
    assert permission["description"] == "Read user profiles"


async def test_permission_name_format(client):
    response = await client.post("/api/permissions", json={"name": "report export"})

    assert response.status_code == 400
    assert "name" in response.json()

    response = await client.put("/api/permissions/13", json={"name": "bad name!"})

    assert response.status_code == 400
    assert "name" in response.json()
    response = await client.get("/api/permissions/13")
    assert response.json()["name"] == "report.view"


async def test_delete_permission(client, fake_redis):
    await client.get("/api/roles/1")
    await client.get("/api/users/1/permissions")

    assert (await client.delete("/api/permissions/15")).status_code == 204

    assert "role:1" not in fake_redis.store
    assert "user:permissions:1" not in fake_redis.store
    response = await client.get("/api/users/1/permissions")
    assert "settings.manage" not in response.json()["all_permissions"]


async def test_delete_group_revokes_inherited_permissions(client, fake_redis):
    await client.get("/api/users/5/permissions")

    assert (await client.delete("/api/groups/3")).status_code == 204

    assert "user:permissions:5" not in fake_redis.store
    response = await client.get("/api/users/5/permissions")
    assert response.json()["group_inherited_permissions"] == []


async def test_group_crud(client):
    response = await client.post("/api/groups", json={"name": "Support", "description": "Customer support"})
    assert response.status_code == 201
    group_id = response.json()["id"]

    response = await client.get("/api/groups", params={"name": "Supp"})
    assert [group["id"] for group in response.json()["items"]] == [group_id]

    response = await client.put(f"/api/groups/{group_id}", json={"name": "Sales"})
    assert response.status_code == 400
