"""
Pytest configuration and shared fixtures

Common fixtures used across multiple test files are defined here.
"""
import sys
from pathlib import Path

import pytest
import pytest_asyncio

# Add api directory to path for imports
# Detect if running in Docker (./api:/app mount) vs host (./api exists)
api_path = Path(__file__).parent.parent / "api"
if not api_path.exists():
    # Running in Docker where api contents are at /app directly
    api_path = Path(__file__).parent.parent
sys.path.insert(0, str(api_path))

TEST_DOMAIN = "example.com"
EVENTS = "io.cozy.events"


# =============================================================================
# Configuration Fixtures
# =============================================================================

@pytest.fixture
def store_config(tmp_path):
    """StoreConfig pointing at an isolated SQLite file"""
    from config import StoreConfig
    return StoreConfig(url=f"sqlite://{tmp_path / 'docstore.db'}")


@pytest.fixture
def app_config(store_config):
    """Full Config for one test instance and no external registries"""
    from config import Config, RegistryConfig, TenantConfig
    config = Config.default()
    config.store = store_config
    config.tenants = TenantConfig(domains=[TEST_DOMAIN])
    config.registry = RegistryConfig(urls=[], fallback_url="")
    config.logging.level = "WARNING"
    return config


@pytest.fixture
def instance():
    from tenancy import Instance
    return Instance(domain=TEST_DOMAIN)


# =============================================================================
# Store Fixtures
# =============================================================================

@pytest_asyncio.fixture
async def sqlite_store(store_config):
    """Opened embedded store, closed after the test"""
    from store.sqlite_store import SQLiteDocumentStore
    store = await SQLiteDocumentStore(store_config).open()
    yield store
    await store.close()


@pytest_asyncio.fixture
async def adapter(sqlite_store):
    from operations.data_adapter import DataAccessAdapter
    return DataAccessAdapter(sqlite_store)


# =============================================================================
# Application Fixtures
# =============================================================================

@pytest.fixture
def client(app_config):
    """TestClient on a fresh app, addressed as the test instance.

    Entering the client runs the lifespan, which opens the store.
    """
    from fastapi.testclient import TestClient
    from main import create_app
    with TestClient(create_app(app_config), base_url=f"http://{TEST_DOMAIN}") as test_client:
        yield test_client
