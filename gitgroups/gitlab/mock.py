"""
An in-memory GitLab, used for testing and for the development server.

It implements the small part of the REST API that `GitlabClient` talks to and
plugs into httpx through `MockGitlab.transport()`:

gitlab = MockGitlab(admin_token="admin")
user = gitlab.add_user(username="alice", token="alice-token")
client = GitlabClient(base_url="http://gitlab", admin_token="admin",
                      transport=gitlab.transport())
"""

import json
import re
from dataclasses import dataclass, field

import httpx

from gitgroups.core.access import GitlabAccessLevel


@dataclass
class MockUser:
    id: int
    username: str
    name: str | None = None
    email: str | None = None
    token: str | None = None

    def to_json(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "name": self.name,
            "email": self.email,
        }


@dataclass
class MockGroup:
    id: int
    name: str
    path: str
    visibility: str
    # GitLab user id -> access level, in insertion order.
    members: dict[int, int] = field(default_factory=dict)

    def to_json(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "path": self.path,
            "visibility": self.visibility,
        }


_GROUP = re.compile(r"^/groups/(\d+)$")
_MEMBERS = re.compile(r"^/groups/(\d+)/members$")
_MEMBER = re.compile(r"^/groups/(\d+)/members/(\d+)$")


def _error(status_code: int, message: str) -> httpx.Response:
    return httpx.Response(status_code, json={"message": message})


def _paginated(request: httpx.Request, items: list[dict]) -> httpx.Response:
    # Offset pagination as GitLab does it: 20 per page unless asked, at most
    # 100, with the following page in X-Next-Page (empty on the last).
    per_page = min(int(request.url.params.get("per_page", 20)), 100)
    page = int(request.url.params.get("page", 1))

    start = (page - 1) * per_page
    next_page = str(page + 1) if start + per_page < len(items) else ""

    return httpx.Response(
        200,
        json=items[start : start + per_page],
        headers={
            "X-Page": str(page),
            "X-Per-Page": str(per_page),
            "X-Next-Page": next_page,
            "X-Total": str(len(items)),
        },
    )


class MockGitlab:
    admin_token: str | None
    users: dict[int, MockUser]
    groups: dict[int, MockGroup]
    requests: list[tuple[str, str]]

    def __init__(self, admin_token: str | None = None):
        self.admin_token = admin_token
        self.users = {}
        self.groups = {}
        self.requests = []
        self._next_user_id = 1
        self._next_group_id = 100

    def add_user(
        self,
        username: str,
        token: str | None = None,
        name: str | None = None,
        email: str | None = None,
    ) -> MockUser:
        user = MockUser(
            id=self._next_user_id, username=username, name=name, email=email, token=token
        )
        self.users[user.id] = user
        self._next_user_id += 1
        return user

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/api/v4")
        token = request.headers.get("PRIVATE-TOKEN")
        body = json.loads(request.content) if request.content else {}

        self.requests.append((request.method, path))

        if path == "/user" and request.method == "GET":
            return self._current_user(token)

        if path == "/groups":
            caller = self._user_for_token(token)
            if caller is None:
                return _error(401, "401 Unauthorized")
            if request.method == "GET":
                return _paginated(
                    request,
                    [g.to_json() for g in self.groups.values() if caller.id in g.members],
                )
            if request.method == "POST":
                return self._create_group(caller, body)

        if self.admin_token is not None and token != self.admin_token:
            return _error(401, "401 Unauthorized")

        if match := _GROUP.match(path):
            group = self.groups.get(int(match.group(1)))
            if group is None:
                return _error(404, "404 Group Not Found")
            if request.method == "PUT":
                group.name = body.get("name", group.name)
                group.path = body.get("path", group.path)
                return httpx.Response(200, json=group.to_json())
            if request.method == "DELETE":
                del self.groups[group.id]
                return httpx.Response(202, json={"message": "202 Accepted"})

        if match := _MEMBERS.match(path):
            group = self.groups.get(int(match.group(1)))
            if group is None:
                return _error(404, "404 Group Not Found")
            if request.method == "GET":
                return _paginated(
                    request,
                    [
                        self._member_json(user_id, level)
                        for user_id, level in group.members.items()
                    ],
                )
            if request.method == "POST":
                user_id = int(body["user_id"])
                if user_id not in self.users:
                    return _error(404, "404 User Not Found")
                if user_id in group.members:
                    return _error(409, "Member already exists")
                if (level := self._level(body)) is None:
                    return _error(400, "access_level does not have a valid value")
                group.members[user_id] = level
                return httpx.Response(
                    201, json=self._member_json(user_id, group.members[user_id])
                )

        if match := _MEMBER.match(path):
            group = self.groups.get(int(match.group(1)))
            user_id = int(match.group(2))
            if group is None or user_id not in group.members:
                return _error(404, "404 Not found")
            if request.method == "PUT":
                if (level := self._level(body)) is None:
                    return _error(400, "access_level does not have a valid value")
                group.members[user_id] = level
                return httpx.Response(
                    200, json=self._member_json(user_id, group.members[user_id])
                )
            if request.method == "DELETE":
                del group.members[user_id]
                return httpx.Response(204)

        return _error(404, "404 Not Found")

    def _user_for_token(self, token: str | None) -> MockUser | None:
        if token is None:
            return None
        return next((u for u in self.users.values() if u.token == token), None)

    def _current_user(self, token: str | None) -> httpx.Response:
        user = self._user_for_token(token)
        if user is None:
            return _error(401, "401 Unauthorized")
        return httpx.Response(200, json=user.to_json())

    def _create_group(self, caller: MockUser, body: dict) -> httpx.Response:
        if any(g.path == body["path"] for g in self.groups.values()):
            return _error(400, "Failed to save group {:path=>['has already been taken']}")

        group = MockGroup(
            id=self._next_group_id,
            name=body["name"],
            path=body["path"],
            visibility=body.get("visibility", "private"),
            members={caller.id: int(GitlabAccessLevel.OWNER)},
        )
        self.groups[group.id] = group
        self._next_group_id += 1
        return httpx.Response(201, json=group.to_json())

    def _level(self, body: dict) -> int | None:
        try:
            return int(GitlabAccessLevel(int(body["access_level"])))
        except (KeyError, ValueError):
            return None

    def _member_json(self, user_id: int, level: int) -> dict:
        user = self.users[user_id]
        return {
            "id": user.id,
            "username": user.username,
            "name": user.name,
            "access_level": level,
        }
