from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from catalog.pin_catalog import PinCatalog
from render.arxml_renderer import ArxmlRenderer
from repository.configuration_store import ConfigurationStore
from repository.kv_storage import InMemoryKeyValueStorage
from schema.app_config_schema import ExportSettings
from service.export_service import ExportService

RES_DIR = Path(__file__).resolve().parents[1] / "res"
TEMPLATE_DIR = RES_DIR / "templates"
CATALOG_PATH = RES_DIR / "vd1cc055_pins.yml"


class FakeClock:
    """Deterministic clock; advance() moves it forward"""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float = 1.0) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 5, 1, 8, 30, 0, tzinfo=timezone.utc))


@pytest.fixture
def kv_storage():
    return InMemoryKeyValueStorage()


@pytest.fixture
def store(kv_storage, clock):
    return ConfigurationStore(kv_storage, clock=clock)


@pytest.fixture
def seeded_store(store):
    store.initialize_defaults()
    return store


@pytest.fixture(scope="session")
def catalog():
    return PinCatalog.from_yaml(CATALOG_PATH)


@pytest.fixture(scope="session")
def dio_renderer():
    return ArxmlRenderer.from_template_dir(TEMPLATE_DIR, "rba_IoSigDio")


@pytest.fixture(scope="session")
def tle_renderer():
    return ArxmlRenderer.from_template_dir(TEMPLATE_DIR, "rba_IoExtTle7244")


@pytest.fixture
def export_service(seeded_store, dio_renderer, catalog, clock):
    return ExportService(
        store=seeded_store,
        renderer=dio_renderer,
        catalog=catalog,
        settings=ExportSettings(),
        clock=clock,
    )
