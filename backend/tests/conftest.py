import os

import pytest

# Use in-memory sqlite for tests; must be set before outputdash.core.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("TIMEZONE", "UTC")


@pytest.fixture(autouse=True)
def _reset_overrides():
    yield
    from outputdash.main import app  # noqa: WPS433
    app.dependency_overrides.clear()
