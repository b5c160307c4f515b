import os

# Must be set before zippath.config is imported
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["ENVIRONMENT"] = "development"
os.environ["DEBUG"] = "false"

import pytest

from helpers import FakeRedis


@pytest.fixture
def fake_redis():
    return FakeRedis()
