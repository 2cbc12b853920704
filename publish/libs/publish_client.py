"""
Async client for the publishing API, as used by the editor UI.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog
from publish.core.config import get_settings

logger = structlog.get_logger(__name__)


class PublishClientError(Exception):
    """Base exception for publishing client errors."""


class PublishAPIError(PublishClientError):
    """Raised for any non-2xx response; the message names the failed operation."""

    def __init__(self, operation: str, status_code: int | None = None) -> None:
        super().__init__(f"{operation} Failed")
        self.operation = operation
        self.status_code = status_code


class PublishClient:
    """One request per call: no retries, no batching, failures raise immediately."""

    def __init__(
        self,
        token: str | None = None,
        *,
        base_url: str | None = None,
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self.token = token
        self.base_url = (base_url or settings.publish_api_url).rstrip("/")
        self.timeout = (
            timeout_seconds if timeout_seconds is not None else settings.client_timeout_seconds
        )
        self._transport = transport

    def _headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if extra:
            headers.update(extra)
        return headers

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        async with httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout, transport=self._transport
        ) as client:
            response = await client.request(
                method,
                path,
                params=params,
                json=json,
                headers=self._headers(headers),
            )

        if not response.is_success:
            logger.warning(
                "publish_api_error",
                operation=operation,
                status_code=response.status_code,
                path=path,
            )
            raise PublishAPIError(operation, status_code=response.status_code)

        if response.status_code == httpx.codes.NO_CONTENT or not response.content:
            return None
        return response.json()

    # Auth

    async def register(self, username: str, email: str, password: str) -> dict[str, Any]:
        data = await self._request(
            "register",
            "POST",
            "/auth/local/register",
            json={"username": username, "email": email, "password": password},
        )
        self.token = data["jwt"]
        return data

    async def login(self, identifier: str, password: str) -> dict[str, Any]:
        data = await self._request(
            "login",
            "POST",
            "/auth/local",
            json={"identifier": identifier, "password": password},
        )
        self.token = data["jwt"]
        return data

    # Users

    async def get_me(self) -> dict[str, Any]:
        return await self._request("getMe", "GET", "/users/me", params={"populate": "*"})

    async def update_me(self, data: dict[str, Any]) -> dict[str, Any]:
        return await self._request("updateUsers", "PUT", "/users/me", json=data)

    async def get_users(self) -> list[dict[str, Any]]:
        return await self._request("getUsers", "GET", "/users", params={"populate": "*"})

    async def user_exists(self, email: str) -> bool:
        users = await self._request(
            "userExists", "GET", "/users", params={"filters[email][$eqi]": email}
        )
        return len(users) > 0

    async def get_user(self, user_id: int) -> dict[str, Any]:
        return await self._request(
            "getUsers", "GET", f"/users/{user_id}", params={"populate": "role"}
        )

    async def update_user(self, user_id: int, data: dict[str, Any]) -> dict[str, Any]:
        return await self._request("updateUsers", "PUT", f"/users/{user_id}", json=data)

    async def delete_user(self, user_id: int) -> dict[str, Any]:
        return await self._request("deleteUsers", "DELETE", f"/users/{user_id}")

    # Posts

    async def get_posts(self, **filters: Any) -> dict[str, Any]:
        params = {key: value for key, value in filters.items() if value is not None}
        return await self._request("getPosts", "GET", "/posts", params=params or None)

    async def get_post(self, identifier: int | str) -> dict[str, Any]:
        return await self._request("getPost", "GET", f"/posts/{identifier}")

    async def create_post(
        self, data: dict[str, Any], *, idempotency_key: str | None = None
    ) -> dict[str, Any]:
        headers = {"Idempotency-Key": idempotency_key} if idempotency_key else None
        return await self._request(
            "createPost", "POST", "/posts", json={"data": data}, headers=headers
        )

    async def update_post(self, post_id: int, data: dict[str, Any]) -> dict[str, Any]:
        return await self._request("updatePost", "PUT", f"/posts/{post_id}", json={"data": data})

    async def delete_post(self, post_id: int) -> dict[str, Any]:
        return await self._request("deletePost", "DELETE", f"/posts/{post_id}")

    # Tags

    async def get_tags(self) -> dict[str, Any]:
        return await self._request("getTags", "GET", "/tags")

    async def create_tag(self, name: str) -> dict[str, Any]:
        return await self._request("createTag", "POST", "/tags", json={"data": {"name": name}})
