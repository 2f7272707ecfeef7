"""Shared test fixtures for Home Stock."""

import json
import logging

import pytest

from home_stock.data_store import FileKeyValueStore
from home_stock.engine import HomeStock
from home_stock.snapshot_store import SnapshotStore


@pytest.fixture
def temp_data_dir(tmp_path):
    """Create a temporary data directory."""
    data_dir = tmp_path / "test_data"
    data_dir.mkdir()
    return data_dir


@pytest.fixture
def data_store(temp_data_dir):
    """Create a file-backed key-value store in a temporary directory."""
    return FileKeyValueStore(data_dir=temp_data_dir)


@pytest.fixture
def snapshot_store(data_store):
    """Create a SnapshotStore over temporary storage."""
    return SnapshotStore(data_store)


@pytest.fixture
def engine(data_store):
    """Create a HomeStock engine over temporary storage."""
    return HomeStock(data_store)


@pytest.fixture
def list_manager(engine):
    """Shopping list manager of the test engine."""
    return engine.shopping


@pytest.fixture
def stock_manager(engine):
    """Stock manager of the test engine."""
    return engine.stock


@pytest.fixture
def sample_snapshot_data():
    """A snapshot as another device would export it."""
    return {
        "version": 1,
        "updatedAt": "2024-05-01T09:30:12.345Z",
        "updatedBy": "Hanako",
        "categories": ["食料品", "日用品", "消耗品", "その他", "Pets"],
        "shoppingItems": [
            {
                "id": "lv1a2b3c-abcdefgh",
                "name": "Milk",
                "category": "食料品",
                "checked": False,
                "createdAt": "2024-05-01T08:00:00.000Z",
                "updatedAt": "2024-05-01T08:00:00.000Z",
            },
            {
                "id": "lv1a2b3d-ijklmnop",
                "name": "Cat food",
                "category": "Pets",
                "checked": True,
                "createdAt": "2024-04-30T08:00:00.000Z",
                "updatedAt": "2024-05-01T09:00:00.000Z",
            },
        ],
        "stockItems": [
            {
                "id": "lv1a2b3e-qrstuvwx",
                "name": "Toilet paper",
                "category": "日用品",
                "status": "low",
                "note": "12 roll pack",
                "updatedAt": "2024-04-29T12:00:00.000Z",
            }
        ],
    }


@pytest.fixture
def sample_snapshot_json(sample_snapshot_data):
    """Sample snapshot as UTF-8 JSON bytes."""
    return json.dumps(sample_snapshot_data, ensure_ascii=False, indent=2).encode("utf-8")


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo logging changes made by the CLI callback."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
