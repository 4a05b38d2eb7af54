"""
Shared test fixtures.
"""

import sys
from pathlib import Path

# Add project root to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

import pytest
from unittest.mock import patch
from datetime import date


# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data: list = None, count: int = None):
        self.data = data or []
        self.count = count if count is not None else len(self.data)


class MockSupabaseQuery:
    """
    Mock Supabase query builder with chainable methods.

    eq/gte/lt filters are applied to the configured rows so one
    table can hold data for several tuples.
    """

    def __init__(self, data: list = None, count: int = None, error: Exception = None):
        self._data = data or []
        self._count = count
        self._error = error

    def select(self, *args, **kwargs):
        return self

    def eq(self, column, value):
        self._data = [row for row in self._data if str(row.get(column)) == str(value)]
        return self

    def gte(self, column, value):
        self._data = [row for row in self._data if str(row.get(column)) >= str(value)]
        return self

    def lt(self, column, value):
        self._data = [row for row in self._data if str(row.get(column)) < str(value)]
        return self

    def order(self, column, **kwargs):
        reverse = kwargs.get("desc", False)
        self._data = sorted(self._data, key=lambda row: str(row.get(column)), reverse=reverse)
        return self

    def limit(self, count):
        # count="exact" reports matching rows, not the returned page
        if self._count is None:
            self._count = len(self._data)
        self._data = self._data[:count]
        return self

    def execute(self) -> MockSupabaseResponse:
        if self._error is not None:
            raise self._error
        return MockSupabaseResponse(
            data=self._data,
            count=self._count if self._count is not None else len(self._data)
        )


class MockSupabaseTable:
    """Mock Supabase table with configurable responses."""

    def __init__(self, data: list = None, count: int = None, error: Exception = None):
        self._data = data or []
        self._count = count
        self._error = error

    def select(self, *args, **kwargs):
        return MockSupabaseQuery(list(self._data), self._count, self._error)


class MockSupabaseClient:
    """Mock Supabase client."""

    def __init__(self):
        self._tables = {}

    def set_table_data(self, table_name: str, data: list, count: int = None):
        """Configure mock data for a table."""
        self._tables[table_name] = {"data": data, "count": count, "error": None}

    def set_table_error(self, table_name: str, error: Exception):
        """Make every query on a table raise."""
        self._tables[table_name] = {"data": [], "count": None, "error": error}

    def table(self, name: str) -> MockSupabaseTable:
        """Get mock table."""
        config = self._tables.get(name, {"data": [], "count": None, "error": None})
        return MockSupabaseTable(config["data"], config["count"], config["error"])


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("current_inventory", [
                {"product_id": "P1", "warehouse_id": "W1", ...}
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def reset_singletons():
    """Drop cached service singletons before and after a test."""
    import services.inventory_data_service as data_module
    import services.projection_service as projection_module
    import services.safety_stock_service as safety_module
    import services.network_service as network_module
    import services.risk_service as risk_module

    modules = [
        (data_module, "_inventory_data_service"),
        (projection_module, "_projection_service"),
        (safety_module, "_safety_stock_service"),
        (network_module, "_network_service"),
        (risk_module, "_risk_service"),
    ]
    for module, attr in modules:
        setattr(module, attr, None)
    yield
    for module, attr in modules:
        setattr(module, attr, None)


@pytest.fixture
def mock_db(mock_supabase, reset_singletons):
    """
    Patch the data layer's database client with the mock.

    Usage:
        def test_something(mock_db):
            mock_db.set_table_data("forecast_data", [...])
    """
    with patch("services.inventory_data_service.get_supabase_client", return_value=mock_supabase):
        yield mock_supabase


@pytest.fixture
def as_of() -> date:
    """Fixed assessment date so results don't depend on the calendar."""
    return date(2026, 3, 1)


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client():
    """
    Create FastAPI test client.

    Usage:
        def test_endpoint(test_client):
            response = test_client.get("/health")
            assert response.status_code == 200
    """
    from fastapi.testclient import TestClient
    from main import app

    return TestClient(app)


@pytest.fixture
def test_client_with_mock_db(mock_db):
    """Create FastAPI test client backed by the mock database."""
    from fastapi.testclient import TestClient
    from main import app

    yield TestClient(app)
