"""
Tests the GitLab client against the in-memory GitLab.
"""

import httpx
import pytest

from gitgroups.core.access import GitlabAccessLevel, Visibility
from gitgroups.core.errors import IncorrectCredentials
from gitgroups.gitlab.client import GitlabClient, GitlabError
from gitgroups.gitlab.mock import MockGitlab


@pytest.fixture
def mock_gitlab():
    gitlab = MockGitlab(admin_token="admin")
    gitlab.add_user(username="alice", token="alice-token", email="alice@example.com")
    gitlab.add_user(username="bob", token="bob-token")
    return gitlab


@pytest.fixture
def client(mock_gitlab):
    return GitlabClient(
        base_url="http://gitlab.test/", admin_token="admin", transport=mock_gitlab.transport()
    )


@pytest.mark.asyncio(loop_scope="session")
async def test_get_user(client):
    user = await client.get_user("alice-token")

    assert user.username == "alice"
    assert user.email == "alice@example.com"

    with pytest.raises(IncorrectCredentials):
        await client.get_user("wrong-token")


@pytest.mark.asyncio(loop_scope="session")
async def test_group_and_members(client, mock_gitlab):
    group = await client.user_create_group(
        token="alice-token",
        group_name="Team",
        path="team",
        visibility=Visibility.PUBLIC,
    )

    assert group.path == "team"
    assert group.visibility == "public"
    assert [g.id for g in await client.user_get_user_groups("alice-token")] == [group.id]
    assert await client.user_get_user_groups("bob-token") == []

    # Paths are unique
    with pytest.raises(GitlabError) as excinfo:
        await client.user_create_group(
            token="bob-token", group_name="Team", path="team", visibility=Visibility.PRIVATE
        )

    assert excinfo.value.status_code == 400

    added = await client.admin_add_user_to_group(
        group_id=group.id, user_id=2, access_level=GitlabAccessLevel.REPORTER
    )
    assert added.username == "bob"
    assert added.access_level == GitlabAccessLevel.REPORTER

    edited = await client.admin_edit_user_in_group(
        group_id=group.id, user_id=2, access_level=GitlabAccessLevel.MAINTAINER
    )
    assert edited.access_level == GitlabAccessLevel.MAINTAINER

    members = await client.admin_get_group_members(group.id)
    assert [(m.username, m.access_level) for m in members] == [
        ("alice", GitlabAccessLevel.OWNER),
        ("bob", GitlabAccessLevel.MAINTAINER),
    ]

    await client.admin_delete_user_from_group(group_id=group.id, user_id=2)

    with pytest.raises(GitlabError) as excinfo:
        await client.admin_delete_user_from_group(group_id=group.id, user_id=2)

    assert excinfo.value.status_code == 404

    renamed = await client.admin_update_group(group_id=group.id, group_name="Renamed")
    assert renamed.name == "Renamed"
    assert renamed.path == "team"

    await client.admin_delete_group(group.id)
    assert mock_gitlab.groups == {}


@pytest.mark.asyncio(loop_scope="session")
async def test_admin_calls_need_admin_token(mock_gitlab):
    client = GitlabClient(
        base_url="http://gitlab.test", admin_token="alice-token", transport=mock_gitlab.transport()
    )

    with pytest.raises(GitlabError) as excinfo:
        await client.admin_get_group_members(100)

    assert excinfo.value.status_code == 401


@pytest.mark.asyncio(loop_scope="session")
async def test_unreachable_gitlab():
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)

    client = GitlabClient(
        base_url="http://gitlab.test", transport=httpx.MockTransport(refuse)
    )

    with pytest.raises(GitlabError) as excinfo:
        await client.admin_delete_group(100)

    assert excinfo.value.status_code is None


@pytest.mark.asyncio(loop_scope="session")
async def test_roster_is_read_across_pages():
    roster = [
        {"id": i, "username": f"user-{i}", "access_level": 30} for i in range(1, 26)
    ]
    requested_pages = []

    def two_pages(request: httpx.Request) -> httpx.Response:
        page = int(request.url.params["page"])
        requested_pages.append(page)

        if page == 1:
            return httpx.Response(200, json=roster[:20], headers={"X-Next-Page": "2"})

        return httpx.Response(200, json=roster[20:], headers={"X-Next-Page": ""})

    client = GitlabClient(
        base_url="http://gitlab.test",
        admin_token="admin",
        transport=httpx.MockTransport(two_pages),
    )

    members = await client.admin_get_group_members(1)

    assert requested_pages == [1, 2]
    assert [m.id for m in members] == list(range(1, 26))


@pytest.mark.asyncio(loop_scope="session")
async def test_mock_gitlab_paginates(mock_gitlab):
    client = GitlabClient(
        base_url="http://gitlab.test",
        admin_token="admin",
        transport=mock_gitlab.transport(),
        per_page=2,
    )

    group = await client.user_create_group(
        token="alice-token", group_name="Big", path="big", visibility=Visibility.PRIVATE
    )

    for i in range(4):
        user = mock_gitlab.add_user(username=f"extra-{i}")
        await client.admin_add_user_to_group(
            group_id=group.id, user_id=user.id, access_level=GitlabAccessLevel.GUEST
        )

    mock_gitlab.requests.clear()

    members = await client.admin_get_group_members(group.id)

    assert [m.username for m in members] == [
        "alice",
        "extra-0",
        "extra-1",
        "extra-2",
        "extra-3",
    ]
    assert mock_gitlab.requests == [("GET", f"/groups/{group.id}/members")] * 3

    for i in range(3):
        await client.user_create_group(
            token="alice-token",
            group_name=f"More {i}",
            path=f"more-{i}",
            visibility=Visibility.PRIVATE,
        )

    groups = await client.user_get_user_groups("alice-token")
    assert [g.path for g in groups] == ["big", "more-0", "more-1", "more-2"]


@pytest.mark.asyncio(loop_scope="session")
async def test_roster_keeps_levels_without_local_counterpart(client, mock_gitlab):
    group = await client.user_create_group(
        token="alice-token", group_name="Plan", path="plan", visibility=Visibility.PRIVATE
    )
    # 15 is GitLab's planner role
    mock_gitlab.groups[group.id].members[2] = 15

    members = await client.admin_get_group_members(group.id)

    assert [(m.username, m.access_level) for m in members] == [
        ("alice", 50),
        ("bob", 15),
    ]
