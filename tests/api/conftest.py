"""Shared fixtures for API tests."""

import tempfile
from pathlib import Path

import pytest  # type: ignore[import-not-found]
from fastapi.testclient import TestClient  # type: ignore[import-untyped]

from tasktrack.api import create_app
from tasktrack.api.auth import create_token_for_user
from tasktrack.core.config import ConfigManager
from tasktrack.core.models import Project, Task
from tasktrack.core.storage import StorageManager


@pytest.fixture
def temp_dir():
    """Create a temporary directory for config and data."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def test_config(temp_dir: Path) -> ConfigManager:
    """Create a test configuration."""
    config = ConfigManager(temp_dir / "config.yml")
    config.set("general.data_dir", str(temp_dir / "data"))
    config.set("user.id", "alice")
    config.ensure_api_secret_key()
    return config


@pytest.fixture
def storage(test_config: ConfigManager) -> StorageManager:
    """Storage on the app's data directory."""
    return StorageManager(test_config.data_dir())


@pytest.fixture
def test_app(test_config: ConfigManager):
    """Create a test FastAPI application."""
    return create_app(test_config)


@pytest.fixture
def client(test_app) -> TestClient:  # type: ignore[no-untyped-def]
    """Create a test client."""
    return TestClient(test_app)


@pytest.fixture
def auth_headers(test_config: ConfigManager) -> dict[str, str]:
    """Bearer headers for alice."""
    token_data = create_token_for_user(test_config, user_id="alice")
    return {"Authorization": f"Bearer {token_data['access_token']}"}


@pytest.fixture
def other_headers(test_config: ConfigManager) -> dict[str, str]:
    """Bearer headers for bob."""
    token_data = create_token_for_user(test_config, user_id="bob")
    return {"Authorization": f"Bearer {token_data['access_token']}"}


@pytest.fixture
def project(storage: StorageManager) -> Project:
    """A project owned by alice."""
    new_project = Project(name="Website", created_by="alice", description="Relaunch")
    storage.create_project(new_project)
    return new_project


@pytest.fixture
def task(storage: StorageManager, project: Project) -> Task:
    """A task in alice's project."""
    new_task = Task(title="Write copy", project_id=project.id, assigned_to="alice")
    storage.create_task(new_task)
    return new_task
