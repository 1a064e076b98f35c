"""Shared fixtures for web tests."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from path_tracker.location.storage import PathStorage
from path_tracker.tracking.writer import PathWriter
from path_tracker.web.app import app, get_service
from path_tracker.web.service import TrackingService


@pytest.fixture
def storage(tmp_path):
    """PathStorage on a throwaway database file."""
    s = PathStorage(str(tmp_path / "web_paths.db"))
    yield s
    s.close()


@pytest.fixture
def writer(storage):
    w = PathWriter(storage, retry_delay_s=0.0)
    yield w
    w.close()


@pytest.fixture
def service(storage, writer):
    return TrackingService(storage, writer=writer)


@pytest.fixture
def client(service):
    """FastAPI test client bound to the per-test service."""
    app.dependency_overrides[get_service] = lambda: service
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
