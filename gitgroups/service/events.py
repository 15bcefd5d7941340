"""
Post-mutation events.

Mutating operations dispatch an event once their remote call has succeeded;
listeners registered with `@register_event_handler(event_type)` receive the
event along with the GitLab client, session and logger of the request.
Each listener runs in its own savepoint: a failing listener has its database
changes rolled back, is logged, and never reaches the caller.
"""

from typing import Awaitable, Callable, ClassVar

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
from structlog.typing import FilteringBoundLogger

from gitgroups.gitlab.client import GitlabClient


class Event(BaseModel):
    event_type: ClassVar[str]


EventHandler = Callable[
    [Event, GitlabClient, AsyncSession, FilteringBoundLogger], Awaitable[None]
]

EVENT_HANDLERS: dict[str, list[EventHandler]] = {}


def register_event_handler(event_type: str):
    """
    Decorator to register an event handler for a specific event type.
    """

    def decorator(handler: EventHandler) -> EventHandler:
        EVENT_HANDLERS.setdefault(event_type, []).append(handler)
        return handler

    return decorator


async def dispatch_event(
    event: Event,
    gitlab: GitlabClient,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> None:
    """
    Run every handler registered for the event's type, in registration order.
    """
    handlers = EVENT_HANDLERS.get(event.event_type, [])

    log = log.bind(event_type=event.event_type, number_of_handlers=len(handlers))

    for handler in handlers:
        try:
            async with conn.begin_nested():
                await handler(event, gitlab, conn, log)
        except Exception as e:
            await log.aerror(
                "event.handler_failed", handler=handler.__name__, error=str(e)
            )

    await log.adebug("event.dispatched")
