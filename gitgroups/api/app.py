"""
FastAPI app
"""

from importlib.metadata import version

from fastapi import FastAPI
from structlog import get_logger

from .dependencies import SETTINGS, get_mock_gitlab
from .errors import add_exception_handlers
from .groups import group_app
from .members import member_app
from .setup import development_setup, initial_setup

settings = SETTINGS()


async def lifespan(app: FastAPI):
    app.settings = settings

    if settings.use_mock_gitlab:
        token = development_setup(settings=settings, gitlab=get_mock_gitlab())
        await get_logger().ainfo("app.mock_gitlab", token=token)
    else:
        initial_setup(settings=settings)

    yield


app = FastAPI(
    lifespan=lifespan,
    title="gitgroups API",
    summary="Groups and group memberships, kept in step with GitLab.",
    version=version("gitgroups"),
)

app = add_exception_handlers(app)

app.include_router(group_app, prefix="/groups")
app.include_router(member_app, prefix="/groups/{group_id}/members")
