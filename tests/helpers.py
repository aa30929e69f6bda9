import asyncio

from santa_bot.dispatch import DispatchResult


class FakeDispatcher:
    """Records every send and answers with a canned result, or raises."""

    def __init__(self, result=None, error=None):
        self.result = result if result is not None else DispatchResult(success=True)
        self.error = error
        self.calls = []

    async def send(self, assignments, event):
        self.calls.append((list(assignments), event))
        if self.error is not None:
            raise self.error
        return self.result


class BlockingDispatcher(FakeDispatcher):
    """Holds the dispatch open until ``release`` is called."""

    def __init__(self, result=None):
        super().__init__(result)
        self.started = asyncio.Event()
        self._released = asyncio.Event()

    def release(self):
        self._released.set()

    async def send(self, assignments, event):
        self.calls.append((list(assignments), event))
        self.started.set()
        await self._released.wait()
        return self.result


PEOPLE = [
    ("Alice", "alice@example.com"),
    ("Bob", "bob@example.com"),
    ("Cara", "cara@example.com"),
]


def fill(session, people=PEOPLE):
    for index, (name, email) in enumerate(people):
        session.update_participant(index, "name", name)
        session.update_participant(index, "email", email)
