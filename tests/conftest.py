"""
Shared fixtures: an in-memory SQLite database per test.

StaticPool keeps one connection so every session (and the worker thread
in the reentrancy test) sees the same in-memory database.
"""

import pytest
import httpx
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from channel_sync.database import Base, build_engine
from channel_sync import models  # noqa: F401


@pytest.fixture
def engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


class RecordingTransport:
    """httpx MockTransport handler that records requests and replays canned responses"""
    
    def __init__(self, responder):
        self.responder = responder
        self.requests = []
    
    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(request)
    
    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self))


@pytest.fixture
def make_transport():
    def _make(responder):
        return RecordingTransport(responder)
    return _make
