import pytest
from sqlalchemy import text

from app.core.cache import get_cache


pytestmark = pytest.mark.usefixtures("seeded")


async def test_root_and_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}

    response = await client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "online"


async def test_effective_permissions_endpoint(client):
    response = await client.get("/api/users/3/permissions")

    assert response.status_code == 200
    assert response.json() == {
        "user_id": 3,
        "username": "jane.smith",
        "direct_permissions": ["group.read", "report.export", "report.view", "user.read", "user.write"],
        "group_inherited_permissions": ["group.read", "report.export", "report.view", "user.read", "user.write"],
        "all_permissions": ["group.read", "report.export", "report.view", "user.read", "user.write"],
    }


async def test_effective_permissions_unknown_user(client):
    response = await client.get("/api/users/999/permissions")

    assert response.status_code == 404
    assert response.json() == {"detail": "User 999 not found"}


async def test_assign_and_remove_user_role(client):
    response = await client.post("/api/assignments/user-role", json={"user_id": 4, "role_id": 2})
    assert response.status_code == 200
    assert response.json() == {"message": "Role assigned to user successfully"}

    response = await client.post("/api/assignments/user-role", json={"user_id": 4, "role_id": 2})
    assert response.status_code == 400
    assert response.json() == {"detail": "Assignment already exists"}

    response = await client.get("/api/users/4/permissions")
    assert "role.write" in response.json()["direct_permissions"]

    response = await client.delete("/api/assignments/user-role/4/2")
    assert response.status_code == 200

    response = await client.delete("/api/assignments/user-role/4/2")
    assert response.status_code == 404
    assert response.json() == {"detail": "Assignment not found"}


async def test_assign_to_unknown_entity(client):
    response = await client.post("/api/assignments/group-role", json={"group_id": 42, "role_id": 1})

    assert response.status_code == 404
    assert response.json() == {"detail": "Group 42 not found"}


async def test_assignment_body_validation(client):
    response = await client.post("/api/assignments/user-group", json={"user_id": 0})

    assert response.status_code == 400
    assert set(response.json()) == {"user_id", "group_id"}


async def test_other_edge_endpoints(client):
    response = await client.post("/api/assignments/user-group", json={"user_id": 5, "group_id": 1})
    assert response.status_code == 200
    response = await client.post("/api/assignments/role-permission", json={"role_id": 4, "permission_id": 15})
    assert response.status_code == 200

    response = await client.get("/api/users/5/permissions")
    assert "settings.manage" in response.json()["group_inherited_permissions"]

    assert (await client.delete("/api/assignments/role-permission/4/15")).status_code == 200
    assert (await client.delete("/api/assignments/user-group/5/1")).status_code == 200
    assert (await client.delete("/api/assignments/group-role/1/4")).status_code == 200

    response = await client.get("/api/users/5/permissions")
    assert "settings.manage" not in response.json()["all_permissions"]


async def test_bulk_endpoints_report_inserted_count(client):
    response = await client.post("/api/assignments/bulk/user-roles", json={"user_id": 4, "role_ids": [1, 2, 4]})
    assert response.status_code == 200
    assert response.json()["count"] == 2

    response = await client.post("/api/assignments/bulk/group-users", json={"group_id": 2, "user_ids": [3]})
    assert response.json()["count"] == 0

    response = await client.post(
        "/api/assignments/bulk/role-permissions", json={"role_id": 5, "permission_ids": [1, 2, 3]}
    )
    assert response.json()["count"] == 2


async def test_bulk_body_validation(client):
    response = await client.post("/api/assignments/bulk/user-roles", json={"user_id": 4, "role_ids": []})
    assert response.status_code == 400
    assert "role_ids" in response.json()

    response = await client.post("/api/assignments/bulk/group-users", json={"group_id": 2, "user_ids": [0]})
    assert response.status_code == 400

    response = await client.post(
        "/api/assignments/bulk/role-permissions", json={"role_id": 5, "permission_ids": [3, -1]}
    )
    assert response.status_code == 400


async def test_bulk_endpoints_are_rate_limited(client):
    statuses = set()
    for _ in range(31):
        response = await client.post("/api/assignments/bulk/user-roles", json={"user_id": 4, "role_ids": [4]})
        statuses.add(response.status_code)

    assert statuses == {200, 429}


async def test_endpoints_work_without_cache(app, client, failing_cache):
    app.dependency_overrides[get_cache] = lambda: failing_cache

    response = await client.post("/api/assignments/user-role", json={"user_id": 4, "role_id": 2})
    assert response.status_code == 200

    response = await client.get("/api/users/4/permissions")
    assert response.status_code == 200
    assert "role.write" in response.json()["all_permissions"]


async def test_store_failure_is_generic_500(client, engine):
    async with engine.begin() as conn:
        await conn.execute(text("DROP TABLE user_roles"))

    response = await client.get("/api/users/3/permissions")

    assert response.status_code == 500
    assert response.json() == {"detail": "An error occurred"}
