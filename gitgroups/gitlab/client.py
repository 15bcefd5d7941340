"""
Client for the GitLab REST API (v4).

Calls prefixed with `user_` act with the token of the calling user, calls
prefixed with `admin_` with the configured administrator token. Every call
opens its own `httpx.AsyncClient`; there is no retry logic, and timeouts are
whatever the client is configured with.
"""

from typing import Any

import httpx
from pydantic import BaseModel

from gitgroups.core.access import GitlabAccessLevel, Visibility
from gitgroups.core.errors import IncorrectCredentials


class GitlabError(Exception):
    """
    GitLab answered with an unexpected status code, or could not be reached.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class GitlabUser(BaseModel):
    id: int
    username: str
    name: str | None = None
    email: str | None = None


class GitlabGroup(BaseModel):
    id: int
    name: str
    path: str
    visibility: str = Visibility.PRIVATE.value


class GitlabUserInGroup(BaseModel):
    id: int
    username: str
    name: str | None = None
    # A raw level: GitLab has levels (e.g. 15, planner) with no local
    # counterpart, which are rejected one member at a time.
    access_level: int


class GitlabClient:
    base_url: str
    admin_token: str | None
    timeout: float
    transport: httpx.AsyncBaseTransport | None
    per_page: int

    def __init__(
        self,
        base_url: str,
        admin_token: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
        per_page: int = 100,
    ):
        self.base_url = base_url.rstrip("/")
        self.admin_token = admin_token
        self.timeout = timeout
        self.transport = transport
        self.per_page = per_page

    async def _request(
        self,
        method: str,
        path: str,
        token: str | None,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """
        Raises
        ------
        GitlabError
            If the request fails or GitLab does not answer with a 2xx code.
        """
        headers = {"Accept": "application/json"}

        if token:
            headers["PRIVATE-TOKEN"] = token

        try:
            async with httpx.AsyncClient(
                base_url=f"{self.base_url}/api/v4",
                timeout=self.timeout,
                transport=self.transport,
            ) as client:
                response = await client.request(
                    method, path, headers=headers, json=json, params=params
                )
        except httpx.HTTPError as e:
            raise GitlabError(f"Error contacting GitLab for {method} {path}: {e}")

        if not response.is_success:
            raise GitlabError(
                f"GitLab answered {response.status_code} for {method} {path}",
                status_code=response.status_code,
            )

        return response

    async def _call(
        self,
        method: str,
        path: str,
        token: str | None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        """
        Make an API call, returning the decoded JSON body (or None for empty
        responses).
        """
        response = await self._request(method, path, token=token, json=json)

        if not response.content:
            return None

        return response.json()

    async def _call_paginated(self, path: str, token: str | None) -> list[Any]:
        """
        GET every page of a list endpoint. GitLab names the following page in
        the `X-Next-Page` header, which is empty on the last one.
        """
        items = []
        page = "1"

        while page:
            response = await self._request(
                "GET",
                path,
                token=token,
                params={"per_page": self.per_page, "page": page},
            )
            items.extend(response.json())
            page = response.headers.get("X-Next-Page", "").strip()

        return items

    async def get_user(self, token: str) -> GitlabUser:
        """
        Find out who the owner of `token` is.

        Raises
        ------
        IncorrectCredentials
            If GitLab does not accept the token.
        """
        try:
            data = await self._call("GET", "/user", token=token)
        except GitlabError as e:
            if e.status_code in (401, 403):
                raise IncorrectCredentials("GitLab did not accept the token")
            raise

        return GitlabUser.model_validate(data)

    async def user_get_user_groups(self, token: str) -> list[GitlabGroup]:
        data = await self._call_paginated("/groups", token=token)
        return [GitlabGroup.model_validate(x) for x in data]

    async def user_create_group(
        self, token: str, group_name: str, path: str, visibility: Visibility
    ) -> GitlabGroup:
        data = await self._call(
            "POST",
            "/groups",
            token=token,
            json={"name": group_name, "path": path, "visibility": visibility.value},
        )
        return GitlabGroup.model_validate(data)

    async def admin_update_group(
        self, group_id: int, group_name: str | None = None, path: str | None = None
    ) -> GitlabGroup:
        body = {}

        if group_name is not None:
            body["name"] = group_name
        if path is not None:
            body["path"] = path

        data = await self._call(
            "PUT", f"/groups/{group_id}", token=self.admin_token, json=body
        )
        return GitlabGroup.model_validate(data)

    async def admin_delete_group(self, group_id: int) -> None:
        await self._call("DELETE", f"/groups/{group_id}", token=self.admin_token)

    async def admin_get_group_members(self, group_id: int) -> list[GitlabUserInGroup]:
        data = await self._call_paginated(
            f"/groups/{group_id}/members", token=self.admin_token
        )
        return [GitlabUserInGroup.model_validate(x) for x in data]

    async def admin_add_user_to_group(
        self, group_id: int, user_id: int, access_level: GitlabAccessLevel
    ) -> GitlabUserInGroup:
        data = await self._call(
            "POST",
            f"/groups/{group_id}/members",
            token=self.admin_token,
            json={"user_id": user_id, "access_level": int(access_level)},
        )
        return GitlabUserInGroup.model_validate(data)

    async def admin_edit_user_in_group(
        self, group_id: int, user_id: int, access_level: GitlabAccessLevel
    ) -> GitlabUserInGroup:
        data = await self._call(
            "PUT",
            f"/groups/{group_id}/members/{user_id}",
            token=self.admin_token,
            json={"access_level": int(access_level)},
        )
        return GitlabUserInGroup.model_validate(data)

    async def admin_delete_user_from_group(self, group_id: int, user_id: int) -> None:
        await self._call(
            "DELETE", f"/groups/{group_id}/members/{user_id}", token=self.admin_token
        )
