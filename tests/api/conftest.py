"""
API fixtures: an app whose container shares the test engine.
"""

from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from mediawatch.api import create_app
from mediawatch.container import Container
from mediawatch.core.settings import MediaWatchSettings


@pytest.fixture
def settings() -> MediaWatchSettings:
    return MediaWatchSettings(database_url="sqlite://", api_prefix="/api", debug=False)


@pytest.fixture
def container(settings, engine) -> Container:
    return Container(settings, engine=engine)


@pytest.fixture
def client(settings, container) -> Generator[TestClient, None, None]:
    app = create_app(settings=settings, container=container, configure_logs=False)
    with TestClient(app) as test_client:
        yield test_client
