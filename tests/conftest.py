"""Shared fixtures: a backend on a temporary SQLite file and an in-memory API stand-in."""

from typing import Any

import pytest

from slakttrad.backend.app import create_app
from slakttrad.errors import ApiError

PASSWORD = "hemligt123"


class FakeTreeClient:
    """Answers client calls the way the REST API would."""

    def __init__(self, people: list[dict[str, Any]] | None = None):
        self.people: list[dict[str, Any]] = list(people or [])
        self.relations: list[dict[str, Any]] = []
        self.fail_person_at: int | None = None
        self.fail_relation_at: int | None = None
        self.trees: dict[int, dict[str, Any]] = {3: {"id": 3, "name": "Familjen Berg"}}

    def me(self) -> dict[str, Any]:
        return {"id": 1, "email": "anna@example.se", "display_name": "Anna"}

    def get_tree(self, tree_id: int) -> dict[str, Any]:
        if tree_id not in self.trees:
            raise ApiError("Trädet finns inte.", status_code=404)
        return self.trees[tree_id]

    def rename_tree(self, tree_id: int, name: str) -> dict[str, Any]:
        tree = self.get_tree(tree_id)
        tree["name"] = name
        return tree

    def delete_tree(self, tree_id: int) -> dict[str, Any]:
        self.get_tree(tree_id)
        del self.trees[tree_id]
        return {"ok": True, "id": tree_id}

    def create_person(self, tree_id: int, payload: dict[str, Any]) -> dict[str, Any]:
        if self.fail_person_at is not None and len(self.people) == self.fail_person_at:
            raise ApiError("Serverfel", status_code=500)
        person = {"id": len(self.people) + 1, "tree_id": tree_id, **payload}
        self.people.append(person)
        return person

    def create_relation(self, tree_id: int, payload: dict[str, Any]) -> dict[str, Any]:
        if self.fail_relation_at is not None and len(self.relations) == self.fail_relation_at:
            raise ApiError("Relationen finns redan.", status_code=409)
        relation = {"id": len(self.relations) + 1, "tree_id": tree_id, **payload}
        self.relations.append(relation)
        return relation

    def list_people(self, tree_id: int) -> list[dict[str, Any]]:
        return list(self.people)


@pytest.fixture
def fake_client():
    return FakeTreeClient()


@pytest.fixture
def app(tmp_path):
    return create_app("testing", {"DATABASE_URL": f"sqlite:///{tmp_path / 'test.db'}"})


@pytest.fixture
def client(app):
    return app.test_client()


async def register(client, email: str = "anna@example.se") -> dict[str, str]:
    """Create an account and get its Authorization header."""
    response = await client.post(
        "/auth/register", json={"email": email, "password": PASSWORD, "display_name": "Anna"}
    )
    assert response.status_code == 201
    data = await response.get_json()
    return {"Authorization": f"Bearer {data['access_token']}"}


async def create_tree(client, headers: dict[str, str], name: str = "Familjen Berg") -> int:
    response = await client.post("/trees", json={"name": name}, headers=headers)
    assert response.status_code == 201
    return (await response.get_json())["id"]


async def create_person(client, headers: dict[str, str], tree_id: int, **fields: Any) -> dict:
    response = await client.post(f"/trees/{tree_id}/people", json=fields, headers=headers)
    assert response.status_code == 201, await response.get_json()
    return await response.get_json()


@pytest.fixture
async def auth_headers(client):
    return await register(client)


@pytest.fixture
async def tree_id(client, auth_headers):
    return await create_tree(client, auth_headers)
