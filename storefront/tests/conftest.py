from __future__ import annotations

import httpx
import pytest
from fastapi.testclient import TestClient

from fakes import FakePlatform, make_settings
from storefront.app.services.storage import MemoryStorageBackend
from storefront.main import create_app


@pytest.fixture
def platform() -> FakePlatform:
    return FakePlatform()


@pytest.fixture
def client(platform: FakePlatform):
    app = create_app(
        make_settings(),
        transport=httpx.MockTransport(platform.handler),
        backend=MemoryStorageBackend(),
    )
    with TestClient(app) as c:
        yield c
