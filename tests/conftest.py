"""
Pytest fixtures for the stock ledger test suite.

Provides:
- A file-backed SQLite database per test (under tmp_path)
- Deterministic clocks
- Store, ledger, catalog, registry and inventory service fixtures
- Seed data factories
- Structured log capture

SQLite is used because the pysqlite driver begins a write transaction only
at the first DML statement.  A read taken in one session therefore does not
block a competing commit from another session, which lets the concurrency
tests interleave a conflicting writer deterministically between a
transaction's read and its write.
"""

import json
import logging
from datetime import datetime, timezone
from io import StringIO
from types import SimpleNamespace

import pytest

from stock_ledger.db.engine import (
    create_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from stock_ledger.domain.clock import DeterministicClock, TickingClock
from stock_ledger.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from stock_ledger.services.catalog_service import CatalogService
from stock_ledger.services.inventory_service import InventoryService
from stock_ledger.services.ledger_service import LedgerService
from stock_ledger.services.registry import ItemRegistry
from stock_ledger.services.store import DocumentStore

FIXED_NOW = datetime(2024, 3, 1, 9, 0, 0, tzinfo=timezone.utc)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture stock_ledger logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, ledger):
            ledger.consume(item.id, "1")
            logs = captured_logs()
            assert any(r["message"] == "movement_committed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("stock_ledger")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow_locks: mark test as using real threads against the database"
    )


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'stock_ledger.db'}"


@pytest.fixture
def engine(database_url):
    eng = init_engine_from_url(database_url)
    create_tables()
    yield eng
    reset_engine()


@pytest.fixture
def session_factory(engine):
    return get_session_factory()


@pytest.fixture
def db_session(session_factory):
    """A separate session for inspecting stored rows directly."""
    session = session_factory()
    yield session
    session.rollback()
    session.close()


# =============================================================================
# Clocks
# =============================================================================


@pytest.fixture
def deterministic_clock():
    return DeterministicClock(FIXED_NOW)


@pytest.fixture
def ticking_clock():
    """Advances one second per read, so every document gets its own timestamp."""
    return TickingClock(FIXED_NOW)


# =============================================================================
# Services
# =============================================================================


@pytest.fixture
def store(session_factory, ticking_clock):
    return DocumentStore(
        session_factory,
        clock=ticking_clock,
        retry_backoff_seconds=0,
    )


@pytest.fixture
def unconfigured_store():
    return DocumentStore(None, clock=DeterministicClock(FIXED_NOW))


@pytest.fixture
def ledger(store):
    return LedgerService(store)


@pytest.fixture
def catalog(store):
    return CatalogService(store)


@pytest.fixture
def registry(store):
    return ItemRegistry(store)


@pytest.fixture
def inventory(store):
    return InventoryService(store)


# =============================================================================
# Seed data
# =============================================================================


@pytest.fixture
def reference_data(catalog):
    """One category, unit and vendor to hang items on."""

    return SimpleNamespace(
        category=catalog.create_category("Baking", "Dry goods"),
        unit=catalog.create_unit("Kilogram", "kg"),
        vendor=catalog.create_vendor("Acme Mills", email="orders@acme.test"),
    )


@pytest.fixture
def make_item(catalog, reference_data):
    """
    Factory for items attached to the reference data.

    Usage::

        flour = make_item("Flour", opening_qty=10, reorder_level=5)
    """

    def _make(
        name="Flour",
        opening_qty=0,
        reorder_level=0,
        price=0,
        has_expiry=False,
        expiry_date=None,
        category_id=None,
    ):
        return catalog.create_item(
            name,
            category_id or reference_data.category.id,
            reference_data.unit.id,
            reference_data.vendor.id,
            price=price,
            reorder_level=reorder_level,
            opening_qty=opening_qty,
            has_expiry=has_expiry,
            expiry_date=expiry_date,
        )

    return _make
