"""Tests for the tree endpoints, the map view and CSV downloads."""

from conftest import create_person, create_tree, register


async def test_create_and_list_trees(client, auth_headers):
    first = await create_tree(client, auth_headers, "Familjen Berg")
    second = await create_tree(client, auth_headers, "Familjen Lund")

    response = await client.get("/trees", headers=auth_headers)
    assert response.status_code == 200
    trees = await response.get_json()
    assert [t["id"] for t in trees] == [second, first]
    assert trees[1]["name"] == "Familjen Berg"


async def test_create_tree_requires_name(client, auth_headers):
    response = await client.post("/trees", json={"name": "  "}, headers=auth_headers)
    assert response.status_code == 400
    assert (await response.get_json())["error"] == "Ange ett namn för släkten."


async def test_rename_tree(client, auth_headers, tree_id):
    response = await client.patch(
        f"/trees/{tree_id}", json={"name": "Släkten Berg"}, headers=auth_headers
    )
    assert response.status_code == 200
    assert (await response.get_json())["name"] == "Släkten Berg"

    response = await client.get(f"/trees/{tree_id}", headers=auth_headers)
    assert (await response.get_json())["name"] == "Släkten Berg"


async def test_other_users_tree_is_not_found(client, auth_headers, tree_id):
    intruder = await register(client, "erik@example.se")

    for method, path in [
        ("GET", f"/trees/{tree_id}"),
        ("DELETE", f"/trees/{tree_id}"),
        ("GET", f"/trees/{tree_id}/people"),
        ("GET", f"/trees/{tree_id}/relations"),
        ("GET", f"/trees/{tree_id}/map"),
    ]:
        response = await client.open(path, method=method, headers=intruder)
        assert response.status_code == 404, path
        assert (await response.get_json())["error"] == "Trädet finns inte."

    response = await client.get("/trees", headers=intruder)
    assert await response.get_json() == []


async def test_delete_tree_cascades(client, app, auth_headers, tree_id):
    anna = await create_person(client, auth_headers, tree_id, first_name="Anna", last_name="Berg")
    karl = await create_person(client, auth_headers, tree_id, first_name="Karl", last_name="Berg")
    response = await client.post(
        f"/trees/{tree_id}/relations",
        json={"from_person_id": anna["id"], "to_person_id": karl["id"], "relation_type": "förälder"},
        headers=auth_headers,
    )
    assert response.status_code == 201

    response = await client.delete(f"/trees/{tree_id}", headers=auth_headers)
    assert response.status_code == 200
    assert await response.get_json() == {"ok": True, "id": tree_id}

    response = await client.get("/trees", headers=auth_headers)
    assert await response.get_json() == []
    response = await client.get(f"/trees/{tree_id}/people", headers=auth_headers)
    assert response.status_code == 404

    stats = app.extensions["family_db"].get_stats()
    assert stats["total_people"] == 0
    assert stats["total_relations"] == 0


async def test_map_view(client, auth_headers, tree_id):
    anna = await create_person(
        client, auth_headers, tree_id, first_name="Anna", last_name="Berg",
        place_label="Uppsala", lat=59.8586, lng=17.6389,
    )
    karl = await create_person(
        client, auth_headers, tree_id, first_name="Karl", last_name="Berg", lat=55.6, lng=13.0,
    )
    sven = await create_person(client, auth_headers, tree_id, first_name="Sven", last_name="Ek")
    for a, b, kind in [(anna, karl, "partner"), (anna, sven, "förälder")]:
        await client.post(
            f"/trees/{tree_id}/relations",
            json={"from_person_id": a["id"], "to_person_id": b["id"], "relation_type": kind},
            headers=auth_headers,
        )

    response = await client.get(f"/trees/{tree_id}/map", headers=auth_headers)
    assert response.status_code == 200
    data = await response.get_json()

    assert [p["name"] for p in data["points"]] == ["Anna Berg", "Karl Berg"]
    assert data["points"][1]["place_label"] == "55.600000, 13.000000"
    assert data["unplaced"] == 1
    assert len(data["lines"]) == 1
    line = data["lines"][0]
    assert line["label"] == "Partner"
    assert line["color"] == "#db2777"
    assert line["coordinates"] == [[59.8586, 17.6389], [55.6, 13.0]]


async def test_csv_downloads(client, auth_headers, tree_id):
    anna = await create_person(client, auth_headers, tree_id, first_name="Anna", last_name="Berg")
    karl = await create_person(client, auth_headers, tree_id, first_name="Karl", last_name="Berg")
    await client.post(
        f"/trees/{tree_id}/relations",
        json={"from_person_id": anna["id"], "to_person_id": karl["id"], "relation_type": "syskon"},
        headers=auth_headers,
    )

    response = await client.get(f"/trees/{tree_id}/export/people.csv", headers=auth_headers)
    assert response.status_code == 200
    assert response.headers["Content-Type"].startswith("text/csv")
    assert "slakttrad-familjen-berg-personer.csv" in response.headers["Content-Disposition"]
    text = await response.get_data(as_text=True)
    assert text.startswith("\ufeffperson_id;förnamn;efternamn")
    assert f"{anna['id']};Anna;Berg;;;;;;\r\n" in text

    response = await client.get(f"/trees/{tree_id}/export/relations.csv", headers=auth_headers)
    assert "slakttrad-familjen-berg-relationer.csv" in response.headers["Content-Disposition"]
    text = await response.get_data(as_text=True)
    assert f";{anna['id']};Anna Berg;Syskon;{karl['id']};Karl Berg\r\n" in text
