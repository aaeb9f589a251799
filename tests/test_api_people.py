"""Tests for the people endpoints."""

import pytest

from conftest import create_person


async def test_create_and_list_people(client, auth_headers, tree_id):
    anna = await create_person(
        client, auth_headers, tree_id,
        first_name=" Anna ", last_name="Berg", gender="Kvinna", birth_year="1901",
    )
    assert anna["first_name"] == "Anna"
    assert anna["gender"] == "kvinna"
    assert anna["birth_year"] == 1901
    assert anna["tree_id"] == tree_id
    assert anna["place_label"] is None

    await create_person(client, auth_headers, tree_id, first_name="Karl", last_name="Berg")

    response = await client.get(f"/trees/{tree_id}/people", headers=auth_headers)
    assert [p["first_name"] for p in await response.get_json()] == ["Anna", "Karl"]

    response = await client.get(f"/trees/{tree_id}/people/{anna['id']}", headers=auth_headers)
    assert (await response.get_json())["last_name"] == "Berg"


async def test_unknown_gender_is_stored_as_null(client, auth_headers, tree_id):
    person = await create_person(
        client, auth_headers, tree_id, first_name="A", last_name="B", gender="okänt"
    )
    assert person["gender"] is None


async def test_coordinates_without_label_get_generated_label(client, auth_headers, tree_id):
    person = await create_person(
        client, auth_headers, tree_id, first_name="A", last_name="B", lat="59,3293", lng="18,0686"
    )
    assert person["lat"] == 59.3293
    assert person["place_label"] == "59.329300, 18.068600"


@pytest.mark.parametrize(
    "body,message",
    [
        ({"first_name": "Anna"}, "Ange förnamn och efternamn."),
        ({"first_name": "A", "last_name": "B", "birth_year": "sjuttonhundra"}, "Ogiltigt födelseår."),
        ({"first_name": "A", "last_name": "B", "birth_year": 10**20}, "Ogiltigt födelseår."),
        ({"first_name": "A", "last_name": "B", "lat": 59.3}, "Ange både latitud och longitud."),
        ({"first_name": "A", "last_name": "B", "place_label": "Lund"}, "Ett platsnamn kräver latitud och longitud."),
        ({"first_name": "A", "last_name": "B", "lat": -91, "lng": 0}, "Latitud måste ligga mellan -90 och 90."),
    ],
)
async def test_create_person_validation(client, auth_headers, tree_id, body, message):
    response = await client.post(f"/trees/{tree_id}/people", json=body, headers=auth_headers)
    assert response.status_code == 400
    assert (await response.get_json())["error"] == message


async def test_patch_updates_only_sent_fields(client, auth_headers, tree_id):
    person = await create_person(
        client, auth_headers, tree_id,
        first_name="Anna", last_name="Berg", gender="kvinna", place_label="Uppsala", lat=59.86, lng=17.64,
    )
    url = f"/trees/{tree_id}/people/{person['id']}"

    response = await client.patch(url, json={"death_year": 1980}, headers=auth_headers)
    assert response.status_code == 200
    updated = await response.get_json()
    assert updated["death_year"] == 1980
    assert updated["gender"] == "kvinna"
    assert updated["place_label"] == "Uppsala"

    response = await client.patch(
        url, json={"lat": None, "lng": None, "place_label": None}, headers=auth_headers
    )
    assert (await response.get_json())["lat"] is None


async def test_patch_coordinates_alone(client, auth_headers, tree_id):
    person = await create_person(
        client, auth_headers, tree_id, first_name="Anna", last_name="Berg", lat=59, lng=17
    )
    url = f"/trees/{tree_id}/people/{person['id']}"

    response = await client.patch(url, json={"lat": 10, "lng": 20}, headers=auth_headers)
    assert response.status_code == 200
    assert (await response.get_json())["place_label"] == "10.000000, 20.000000"

    response = await client.patch(url, json={"lat": None, "lng": None}, headers=auth_headers)
    assert response.status_code == 200
    updated = await response.get_json()
    assert (updated["lat"], updated["lng"], updated["place_label"]) == (None, None, None)


async def test_patch_rejects_invalid_merge(client, auth_headers, tree_id):
    person = await create_person(client, auth_headers, tree_id, first_name="Anna", last_name="Berg")
    url = f"/trees/{tree_id}/people/{person['id']}"

    response = await client.patch(url, json={"last_name": " "}, headers=auth_headers)
    assert response.status_code == 400
    assert (await response.get_json())["error"] == "Ange förnamn och efternamn."

    response = await client.patch(url, json={"place_label": "Lund"}, headers=auth_headers)
    assert response.status_code == 400

    response = await client.get(url, headers=auth_headers)
    assert (await response.get_json())["last_name"] == "Berg"


async def test_delete_person_removes_relations(client, auth_headers, tree_id):
    anna = await create_person(client, auth_headers, tree_id, first_name="Anna", last_name="Berg")
    karl = await create_person(client, auth_headers, tree_id, first_name="Karl", last_name="Berg")
    await client.post(
        f"/trees/{tree_id}/relations",
        json={"from_person_id": anna["id"], "to_person_id": karl["id"], "relation_type": "partner"},
        headers=auth_headers,
    )

    response = await client.delete(f"/trees/{tree_id}/people/{anna['id']}", headers=auth_headers)
    assert await response.get_json() == {"ok": True, "id": anna["id"]}

    response = await client.get(f"/trees/{tree_id}/relations", headers=auth_headers)
    assert await response.get_json() == []

    response = await client.get(f"/trees/{tree_id}/people/{anna['id']}", headers=auth_headers)
    assert response.status_code == 404
    assert (await response.get_json())["error"] == "Personen finns inte."


async def test_person_from_another_tree_is_not_found(client, auth_headers, tree_id):
    other = await client.post("/trees", json={"name": "Lund"}, headers=auth_headers)
    other_id = (await other.get_json())["id"]
    person = await create_person(client, auth_headers, other_id, first_name="Erik", last_name="Lund")

    response = await client.get(f"/trees/{tree_id}/people/{person['id']}", headers=auth_headers)
    assert response.status_code == 404
    response = await client.delete(f"/trees/{tree_id}/people/{person['id']}", headers=auth_headers)
    assert response.status_code == 404
