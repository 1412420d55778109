"""
Tests for storage backends and atomic commit support
"""

import pytest
import tempfile
from pathlib import Path

from personal_finance.storage import InMemoryStorage, SQLiteStorage


record_a = {"id": "rec_a", "owner_id": "u1", "amount": "100.50", "created_at": "2024-01-01T00:00:00+00:00"}
record_b = {"id": "rec_b", "owner_id": "u2", "amount": "7.25", "created_at": "2024-01-02T00:00:00+00:00"}


class TestInMemoryStorage:
    """Basic operations and transactions on InMemoryStorage"""

    def test_basic_operations(self):
        """Test save, load, find, count, delete and clear"""
        storage = InMemoryStorage()

        storage.save("t", "rec_a", record_a)
        storage.save("t", "rec_b", record_b)

        assert storage.load("t", "rec_a") == record_a
        assert storage.load("t", "missing") is None
        assert storage.exists("t", "rec_b")
        assert storage.count("t") == 2
        assert len(storage.load_all("t")) == 2

        found = storage.find("t", {"owner_id": "u2"})
        assert [r["id"] for r in found] == ["rec_b"]
        assert storage.find("t", {"owner_id": "nobody"}) == []

        assert storage.delete("t", "rec_a")
        assert not storage.delete("t", "rec_a")
        assert storage.count("t") == 1

        storage.clear_table("t")
        assert storage.count("t") == 0

    def test_loaded_records_are_copies(self):
        """Test that mutating a loaded record does not change storage"""
        storage = InMemoryStorage()
        storage.save("t", "rec_a", record_a)

        loaded = storage.load("t", "rec_a")
        loaded["amount"] = "0"

        assert storage.load("t", "rec_a")["amount"] == "100.50"

    def test_atomic_commit(self):
        """Test that writes inside atomic() are visible after commit"""
        storage = InMemoryStorage()
        assert storage.supports_transactions

        with storage.atomic():
            storage.save("t", "rec_a", record_a)
            storage.save("t", "rec_b", record_b)

        assert storage.count("t") == 2

    def test_atomic_rollback(self):
        """Test that an exception inside atomic() discards every write"""
        storage = InMemoryStorage()
        storage.save("t", "rec_a", record_a)

        with pytest.raises(RuntimeError):
            with storage.atomic():
                storage.delete("t", "rec_a")
                storage.save("t", "rec_b", record_b)
                raise RuntimeError("boom")

        assert storage.load("t", "rec_a") == record_a
        assert not storage.exists("t", "rec_b")

    def test_non_transactional_keeps_partial_writes(self):
        """Test that a non-transactional backend applies writes immediately"""
        storage = InMemoryStorage(transactional=False)
        assert not storage.supports_transactions

        with pytest.raises(RuntimeError):
            with storage.atomic():
                storage.save("t", "rec_a", record_a)
                raise RuntimeError("boom")

        assert storage.exists("t", "rec_a")


class TestSQLiteStorage:
    """Basic operations and transactions on SQLiteStorage"""

    def test_basic_operations(self):
        """Test CRUD and JSON field filtering"""
        with tempfile.TemporaryDirectory() as temp_dir:
            storage = SQLiteStorage(Path(temp_dir) / "test.db")

            storage.save("t", "rec_a", record_a)
            storage.save("t", "rec_b", record_b)

            assert storage.load("t", "rec_a") == record_a
            assert storage.exists("t", "rec_b")
            assert storage.count("t") == 2
            assert [r["id"] for r in storage.load_all("t")] == ["rec_a", "rec_b"]
            assert [r["id"] for r in storage.find("t", {"owner_id": "u1"})] == ["rec_a"]
            assert storage.find("t", {"owner_id": "u1", "amount": "7.25"}) == []

            updated = dict(record_a, amount="1.00")
            storage.save("t", "rec_a", updated)
            assert storage.load("t", "rec_a")["amount"] == "1.00"
            assert storage.count("t") == 2

            assert storage.delete("t", "rec_b")
            storage.clear_table("t")
            assert storage.count("t") == 0

            storage.close()

    def test_persistence_across_connections(self):
        """Test that committed data survives reopening the database"""
        with tempfile.TemporaryDirectory() as temp_dir:
            db_path = Path(temp_dir) / "test.db"

            storage = SQLiteStorage(db_path)
            storage.save("t", "rec_a", record_a)
            storage.close()

            reopened = SQLiteStorage(db_path)
            assert reopened.load("t", "rec_a") == record_a
            reopened.close()

    def test_atomic_rollback(self):
        """Test that SQLite discards writes made inside a failed atomic()"""
        with tempfile.TemporaryDirectory() as temp_dir:
            storage = SQLiteStorage(Path(temp_dir) / "test.db")
            storage.save("t", "rec_a", record_a)

            with pytest.raises(RuntimeError):
                with storage.atomic():
                    storage.save("t", "rec_b", record_b)
                    storage.delete("t", "rec_a")
                    raise RuntimeError("boom")

            assert storage.exists("t", "rec_a")
            assert not storage.exists("t", "rec_b")

            with storage.atomic():
                storage.save("t", "rec_b", record_b)
            assert storage.exists("t", "rec_b")

            storage.close()
