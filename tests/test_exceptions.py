import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, ProgrammingError

from bepawa.core.exceptions import (
    MISSING_TABLES_MESSAGE,
    ConfigurationError,
    DatabaseError,
    ErrorHandler,
    NotFoundError,
    create_error_response,
    handle_database_error,
)
from bepawa.core.permissions import UserRole


class _PgError(Exception):
    pgcode = "42P01"


@pytest.mark.unit
def test_missing_table_becomes_configuration_error():
    sqlite_error = OperationalError("SELECT 1", {}, Exception("no such table: products"))
    converted = handle_database_error(sqlite_error, "fetch products")
    assert isinstance(converted, ConfigurationError)
    assert converted.message == MISSING_TABLES_MESSAGE

    pg_error = ProgrammingError("SELECT 1", {}, _PgError("undefined table"))
    assert isinstance(handle_database_error(pg_error), ConfigurationError)


@pytest.mark.unit
def test_other_driver_errors_become_database_errors():
    converted = handle_database_error(OperationalError("SELECT 1", {}, Exception("connection refused")))
    assert isinstance(converted, DatabaseError)
    assert converted.message == "Database connection failed"


@pytest.mark.unit
def test_error_handler_only_converts_driver_errors():
    with pytest.raises(DatabaseError):
        with ErrorHandler("op"):
            raise OperationalError("SELECT 1", {}, Exception("timeout expired"))
    with pytest.raises(KeyError):
        with ErrorHandler("op"):
            raise KeyError("x")


@pytest.mark.unit
def test_error_response_shape():
    body = create_error_response(NotFoundError("Order not found", details={"id": "o1"}), request_id="r-1")
    assert body["message"] == "Order not found"
    assert body["error_code"] == "NOT_FOUND_ERROR"
    assert body["details"] == {"id": "o1"}
    assert body["request_id"] == "r-1"
    assert body["timestamp"]


@pytest.mark.asyncio
async def test_catalog_reports_missing_tables(client, db, make_profile, headers_for):
    customer = await make_profile(UserRole.INDIVIDUAL)
    await db.execute(text("DROP TABLE products"))
    await db.commit()

    response = await client.get("/api/v1/products", headers=headers_for(customer))
    assert response.status_code == 500
    assert response.json()["message"] == MISSING_TABLES_MESSAGE
    assert response.json()["error_code"] == "MISSING_TABLE"
