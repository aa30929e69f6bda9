import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

import aiohttp

from .errors import DispatchFailure
from .models import Assignment, EventDetails

REJECTED_MESSAGE = "Failed to send emails"


@dataclass(frozen=True)
class DispatchResult:
    success: bool
    message: Optional[str] = None

    @classmethod
    def from_json(cls, data) -> "DispatchResult":
        if not isinstance(data, dict) or not isinstance(data.get("success"), bool):
            raise DispatchFailure("Unexpected response from the notification service")
        message = data.get("message")
        return cls(success=data["success"], message=message if isinstance(message, str) else None)


class AssignmentDispatcher(Protocol):
    async def send(self, assignments: Sequence[Assignment], event: EventDetails) -> DispatchResult:
        ...


def build_payload(assignments: Sequence[Assignment], event: EventDetails) -> dict:
    return {
        "assignments": [assignment.to_payload() for assignment in assignments],
        "eventDetails": event.to_payload(),
    }


class HttpDispatcher:
    """Hands the finished draw to the notification service over HTTP."""

    def __init__(self, url: str, *, timeout: float = 30.0, session: Optional[aiohttp.ClientSession] = None) -> None:
        self._url = url
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._owns_session = session is None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    async def send(self, assignments: Sequence[Assignment], event: EventDetails) -> DispatchResult:
        payload = build_payload(assignments, event)
        try:
            async with self._get_session().post(self._url, json=payload, timeout=self._timeout) as response:
                try:
                    data = await response.json(content_type=None)
                except ValueError:
                    data = None
                if response.status >= 400:
                    message = data.get("message") if isinstance(data, dict) else None
                    raise DispatchFailure(message or f"Notification service responded with HTTP {response.status}")
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logging.warning("Dispatch to %s failed: %r", self._url, exc)
            raise DispatchFailure() from exc
        return DispatchResult.from_json(data)

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
        self._session = None
