"""
Translation of service exceptions to HTTP responses.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from structlog import get_logger

from gitgroups.core.errors import GitgroupsError
from gitgroups.gitlab.client import GitlabError


async def gitgroups_error_handler(request: Request, exc: GitgroupsError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error_code": exc.error_code.value, "detail": exc.message},
    )


async def gitlab_error_handler(request: Request, exc: GitlabError):
    await get_logger().aerror(
        "api.gitlab_error", status_code=exc.status_code, error=str(exc)
    )
    return JSONResponse(
        status_code=502,
        content={"error_code": "GitlabError", "detail": str(exc)},
    )


def add_exception_handlers(app: FastAPI) -> FastAPI:
    """
    Adds the handlers that turn `GitgroupsError` into its status code and
    GitLab failures into a 502.
    """
    app.add_exception_handler(GitgroupsError, gitgroups_error_handler)
    app.add_exception_handler(GitlabError, gitlab_error_handler)
    return app
