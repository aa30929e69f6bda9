import pytest

from helpers import fill
from santa_bot.workflow import Session


@pytest.fixture
def session():
    return Session()


@pytest.fixture
def ready_session():
    session = Session()
    assert session.submit_event_details("3", "2024-12-24", "25")
    fill(session)
    return session
