"""HTTP client for the Släktträd REST API.

Used by the command-line tool to drive imports and exports. Every call is a
single blocking request; errors come back as ApiError carrying the server's
message.
"""

import logging
from typing import Any

import requests

from slakttrad.errors import ApiError

logger = logging.getLogger(__name__)


class TreeClient:
    """Thin wrapper around the REST endpoints."""

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ):
        """Initialize the client.

        Args:
            base_url: API root, e.g. http://localhost:4000
            token: Bearer access token
            timeout: Per-request timeout in seconds
            session: Optional requests session to reuse
        """
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()

    def _request(self, method: str, path: str, json: dict[str, Any] | None = None) -> Any:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        url = f"{self.base_url}{path}"
        logger.debug("%s %s", method, url)
        try:
            response = self.session.request(
                method, url, json=json, headers=headers, timeout=self.timeout
            )
        except requests.RequestException as e:
            raise ApiError(f"Kunde inte nå servern: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        if not response.ok:
            message = data.get("error") if isinstance(data, dict) else None
            raise ApiError(message or "Okänt fel.", status_code=response.status_code)
        return data

    # Auth

    def register(self, email: str, password: str, display_name: str | None = None) -> str:
        """Create an account and keep its access token."""
        data = self._request(
            "POST",
            "/auth/register",
            {"email": email, "password": password, "display_name": display_name},
        )
        self.token = data["access_token"]
        return self.token

    def login(self, email: str, password: str) -> str:
        """Log in and keep the access token."""
        data = self._request("POST", "/auth/login", {"email": email, "password": password})
        self.token = data["access_token"]
        return self.token

    def me(self) -> dict[str, Any]:
        return self._request("GET", "/me")

    # Trees

    def list_trees(self) -> list[dict[str, Any]]:
        return self._request("GET", "/trees")

    def get_tree(self, tree_id: int) -> dict[str, Any]:
        return self._request("GET", f"/trees/{tree_id}")

    def create_tree(self, name: str) -> dict[str, Any]:
        return self._request("POST", "/trees", {"name": name})

    def rename_tree(self, tree_id: int, name: str) -> dict[str, Any]:
        return self._request("PATCH", f"/trees/{tree_id}", {"name": name})

    def delete_tree(self, tree_id: int) -> dict[str, Any]:
        return self._request("DELETE", f"/trees/{tree_id}")

    # People

    def list_people(self, tree_id: int) -> list[dict[str, Any]]:
        return self._request("GET", f"/trees/{tree_id}/people")

    def create_person(self, tree_id: int, payload: dict[str, Any]) -> dict[str, Any]:
        return self._request("POST", f"/trees/{tree_id}/people", payload)

    # Relations

    def list_relations(self, tree_id: int) -> list[dict[str, Any]]:
        return self._request("GET", f"/trees/{tree_id}/relations")

    def create_relation(self, tree_id: int, payload: dict[str, Any]) -> dict[str, Any]:
        return self._request("POST", f"/trees/{tree_id}/relations", payload)
