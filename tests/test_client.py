"""Tests for the REST client with a mocked requests session."""

from unittest.mock import MagicMock

import pytest
import requests

from slakttrad.client import TreeClient
from slakttrad.errors import ApiError


def _response(status_code=200, data=None, json_error=False):
    response = MagicMock()
    response.status_code = status_code
    response.ok = status_code < 400
    if json_error:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = data
    return response


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


def test_login_keeps_token(session):
    session.request.return_value = _response(200, {"access_token": "abc"})
    client = TreeClient("http://api.test/", session=session)

    assert client.login("anna@example.se", "hemligt123") == "abc"
    assert client.token == "abc"

    session.request.assert_called_once()
    args, kwargs = session.request.call_args
    assert args == ("POST", "http://api.test/auth/login")
    assert kwargs["json"] == {"email": "anna@example.se", "password": "hemligt123"}
    assert "Authorization" not in kwargs["headers"]


def test_requests_send_bearer_token(session):
    session.request.return_value = _response(200, [{"id": 1, "first_name": "Anna"}])
    client = TreeClient("http://api.test", token="abc", timeout=5, session=session)

    assert client.list_people(3) == [{"id": 1, "first_name": "Anna"}]
    args, kwargs = session.request.call_args
    assert args == ("GET", "http://api.test/trees/3/people")
    assert kwargs["headers"]["Authorization"] == "Bearer abc"
    assert kwargs["timeout"] == 5


def test_create_relation_payload(session):
    session.request.return_value = _response(201, {"id": 9})
    client = TreeClient("http://api.test", token="abc", session=session)
    payload = {"from_person_id": 1, "to_person_id": 2, "relation_type": "partner"}

    assert client.create_relation(4, payload) == {"id": 9}
    args, kwargs = session.request.call_args
    assert args == ("POST", "http://api.test/trees/4/relations")
    assert kwargs["json"] == payload


def test_error_response_uses_server_message(session):
    session.request.return_value = _response(409, {"error": "Relationen finns redan."})
    client = TreeClient("http://api.test", token="abc", session=session)

    with pytest.raises(ApiError) as exc_info:
        client.create_relation(1, {})
    assert exc_info.value.message == "Relationen finns redan."
    assert exc_info.value.status_code == 409


def test_error_without_json_body(session):
    session.request.return_value = _response(502, json_error=True)
    client = TreeClient("http://api.test", token="abc", session=session)

    with pytest.raises(ApiError) as exc_info:
        client.list_trees()
    assert exc_info.value.message == "Okänt fel."
    assert exc_info.value.status_code == 502


def test_network_failure(session):
    session.request.side_effect = requests.ConnectionError("refused")
    client = TreeClient("http://api.test", token="abc", session=session)

    with pytest.raises(ApiError) as exc_info:
        client.list_trees()
    assert exc_info.value.message.startswith("Kunde inte nå servern:")
    assert exc_info.value.status_code is None


def test_tree_management_requests(session):
    session.request.return_value = _response(200, {"id": 4, "name": "Släkten Berg"})
    client = TreeClient("http://api.test", token="abc", session=session)

    client.rename_tree(4, "Släkten Berg")
    args, kwargs = session.request.call_args
    assert args == ("PATCH", "http://api.test/trees/4")
    assert kwargs["json"] == {"name": "Släkten Berg"}

    client.delete_tree(4)
    assert session.request.call_args[0] == ("DELETE", "http://api.test/trees/4")

    client.me()
    assert session.request.call_args[0] == ("GET", "http://api.test/me")
