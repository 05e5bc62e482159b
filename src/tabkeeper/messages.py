"""Request/response message protocol between pages and the service."""

import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from tabkeeper.events import EventIngest, MalformedEvent, TabEvent
from tabkeeper.notify import NotificationController

logger = logging.getLogger(__name__)

BookmarkSource = Callable[[], Iterable[dict[str, Any]]]


class _TabMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    tab_id: int = Field(alias="tabId", ge=0)


class ActivateFrozenTabMessage(_TabMessage):
    """User pressed "Go to Tab" on a closing-soon overlay."""

    action: Literal["activateFrozenTab"]


class DismissFrozenWarningMessage(_TabMessage):
    """User pressed "Dismiss" on a closing-soon overlay."""

    action: Literal["dismissFrozenWarning"]


def _no_bookmarks() -> list[dict[str, Any]]:
    return []


class MessageRouter:
    """Dispatches page messages by their "action" key.

    | action                | payload   | response          |
    |-----------------------|-----------|-------------------|
    | updateActivity        | (sender)  | none              |
    | activateFrozenTab     | {tabId}   | none              |
    | dismissFrozenWarning  | {tabId}   | none              |
    | getGroupBookmarks     |           | {"groups": [...]} |

    Bookmark groups are owned by an external store; the router only asks
    `bookmark_source` for them. Malformed messages are logged and dropped.
    """

    def __init__(
        self,
        ingest: EventIngest,
        notifier: NotificationController,
        bookmark_source: BookmarkSource | None = None,
    ) -> None:
        self._ingest = ingest
        self._notifier = notifier
        self._bookmark_source = bookmark_source or _no_bookmarks
        self._handlers: dict[
            str, Callable[[dict[str, Any], int | None], Awaitable[dict[str, Any] | None]]
        ] = {
            "updateActivity": self._update_activity,
            "activateFrozenTab": self._activate_frozen_tab,
            "dismissFrozenWarning": self._dismiss_frozen_warning,
            "getGroupBookmarks": self._get_group_bookmarks,
        }

    @property
    def actions(self) -> list[str]:
        return sorted(self._handlers)

    async def handle(
        self,
        message: Any,
        sender_tab_id: int | None = None,
    ) -> dict[str, Any] | None:
        """Handle one message.

        Args:
            message: Decoded message body, a dict with an "action" key.
            sender_tab_id: Tab that sent the message, if it came from a page.

        Returns:
            The response body, or None for actions without a response.
        """
        action = message.get("action") if isinstance(message, dict) else None
        handler = self._handlers.get(action) if isinstance(action, str) else None
        if handler is None:
            logger.debug("Ignoring message with unknown action: %r", action)
            return None

        try:
            return await handler(message, sender_tab_id)
        except MalformedEvent as e:
            logger.debug("Dropping malformed %s message: %s", action, e)
            return None

    @staticmethod
    def _parse(model: type[_TabMessage], message: dict[str, Any]) -> _TabMessage:
        try:
            return model.model_validate(message)
        except ValidationError as e:
            raise MalformedEvent(str(e)) from e

    async def _update_activity(
        self, message: dict[str, Any], sender_tab_id: int | None
    ) -> None:
        if sender_tab_id is None:
            raise MalformedEvent("updateActivity needs a sender tab")
        self._ingest.handle(TabEvent.interaction(sender_tab_id))
        return None

    async def _activate_frozen_tab(
        self, message: dict[str, Any], sender_tab_id: int | None
    ) -> None:
        parsed = self._parse(ActivateFrozenTabMessage, message)
        await self._notifier.respond(parsed.tab_id, "go_to_tab")
        return None

    async def _dismiss_frozen_warning(
        self, message: dict[str, Any], sender_tab_id: int | None
    ) -> None:
        parsed = self._parse(DismissFrozenWarningMessage, message)
        await self._notifier.respond(parsed.tab_id, "dismiss")
        return None

    async def _get_group_bookmarks(
        self, message: dict[str, Any], sender_tab_id: int | None
    ) -> dict[str, Any]:
        return {"groups": list(self._bookmark_source())}
