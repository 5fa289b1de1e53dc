"""
Unit tests for schema extraction and caching.
"""

import pytest

from sql_analyst.schemas import TableDefinition
from sql_analyst.services import schema_provider
from sql_analyst.services.schema_provider import (
    SchemaProvider,
    SchemaUnavailable,
    read_catalog,
    schema_ddl,
)
from sql_analyst.services.session import DatabaseHandle


@pytest.fixture
def catalog_reads(monkeypatch):
    """Count catalog queries made by SchemaProvider."""
    calls = []
    real_read = schema_provider.read_catalog

    def spy(handle):
        calls.append(handle)
        return real_read(handle)

    monkeypatch.setattr(schema_provider, "read_catalog", spy)
    return calls


class TestReadCatalog:
    """Test suite for read_catalog."""

    def test_reads_tables_in_catalog_order(self, sample_db_path):
        schema = read_catalog(DatabaseHandle(sample_db_path))

        assert [t.name for t in schema] == ["customers", "orders"]
        assert schema[1].ddl.startswith("CREATE TABLE orders")

    def test_empty_database_is_unavailable(self, tmp_path):
        path = tmp_path / "empty.db"
        path.write_bytes(b"")

        with pytest.raises(SchemaUnavailable):
            read_catalog(DatabaseHandle(str(path)))

    def test_non_sqlite_file_is_unavailable(self, tmp_path):
        path = tmp_path / "notes.db"
        path.write_bytes(b"this is definitely not a database file " * 10)

        with pytest.raises(SchemaUnavailable):
            read_catalog(DatabaseHandle(str(path)))


class TestSchemaDdl:
    """Test suite for schema_ddl."""

    def test_joins_ddl_with_blank_lines(self):
        schema = (
            TableDefinition(name="a", ddl="CREATE TABLE a (x)"),
            TableDefinition(name="b", ddl=""),
            TableDefinition(name="c", ddl="CREATE TABLE c (y)"),
        )

        assert schema_ddl(schema) == "CREATE TABLE a (x)\n\nCREATE TABLE c (y)"


class TestSchemaProvider:
    """Test suite for SchemaProvider caching."""

    def test_reuses_snapshot_for_same_handle(self, sample_db_path, catalog_reads):
        provider = SchemaProvider()
        handle = DatabaseHandle(sample_db_path)

        first = provider.load(handle)
        second = provider.load(handle)

        assert second is first
        assert len(catalog_reads) == 1

    def test_rebuilds_once_after_replacement(self, sample_db_path, catalog_reads):
        provider = SchemaProvider()
        provider.load(DatabaseHandle(sample_db_path))

        # Same file, new upload: identity differs, so reload.
        replacement = DatabaseHandle(sample_db_path)
        provider.load(replacement)
        provider.load(replacement)

        assert len(catalog_reads) == 2
        assert catalog_reads[1] is replacement

    def test_failed_load_keeps_previous_snapshot(
        self, sample_db_path, tmp_path, catalog_reads
    ):
        provider = SchemaProvider()
        good = DatabaseHandle(sample_db_path)
        snapshot = provider.load(good)
        empty = tmp_path / "empty.db"
        empty.write_bytes(b"")

        with pytest.raises(SchemaUnavailable):
            provider.load(DatabaseHandle(str(empty)))

        assert provider.load(good) is snapshot
        assert len(catalog_reads) == 2
