"""
Tests for the transaction store
"""

from decimal import Decimal

from personal_finance.storage import InMemoryStorage
from personal_finance.transactions import TransactionStore, TransactionType


class TestTransactionStore:
    """Test append, query and removal of transaction records"""

    def setup_method(self):
        """Set up test fixtures"""
        self.storage = InMemoryStorage()
        self.store = TransactionStore(self.storage)

    def test_append_and_get(self):
        """Test that appended records round-trip through storage"""
        transaction = self.store.append("acc_a", "acc_b", Decimal('12.30'), "groceries")

        loaded = self.store.get(transaction.id)
        assert loaded.transaction_type == TransactionType.TRANSFER
        assert loaded.origin_account_id == "acc_a"
        assert loaded.destination_account_id == "acc_b"
        assert loaded.amount == Decimal('12.30')
        assert loaded.description == "groceries"
        assert loaded.created_at == transaction.created_at
        assert self.store.get("missing") is None

    def test_explicit_id(self):
        """Test appending under a caller-chosen id"""
        transaction = self.store.append("acc_a", "acc_b", Decimal('1.00'), transaction_id="fixed-id")
        assert transaction.id == "fixed-id"
        assert self.store.get("fixed-id") is not None

    def test_timestamps_strictly_increase(self):
        """Test that rapid appends never share a creation time"""
        created = [self.store.append("acc_a", "acc_b", Decimal('1.00')).created_at for _ in range(200)]

        assert all(later > earlier for earlier, later in zip(created, created[1:]))

    def test_clock_seeded_from_existing_records(self):
        """Test that a new store continues after the newest stored record"""
        last = None
        for _ in range(5):
            last = self.store.append("acc_a", "acc_b", Decimal('1.00'))

        reopened = TransactionStore(self.storage)
        assert reopened.append("acc_a", "acc_b", Decimal('1.00')).created_at > last.created_at

    def test_query_order_and_predicate(self):
        """Test ordering in both directions and filtering"""
        first = self.store.append("acc_a", "acc_b", Decimal('1.00'))
        second = self.store.append("acc_b", "acc_c", Decimal('2.00'))
        third = self.store.append("acc_c", "acc_a", Decimal('3.00'))

        assert [t.id for t in self.store.query()] == [third.id, second.id, first.id]
        assert [t.id for t in self.store.query(newest_first=False)] == [first.id, second.id, third.id]

        involving_a = self.store.query(lambda t: t.involves("acc_a"))
        assert [t.id for t in involving_a] == [third.id, first.id]

    def test_delete_for_account(self):
        """Test removing every record that references an account"""
        self.store.append("acc_a", "acc_b", Decimal('1.00'))
        self.store.append("acc_b", "acc_a", Decimal('2.00'))
        kept = self.store.append("acc_b", "acc_c", Decimal('3.00'))

        assert self.store.delete_for_account("acc_a") == 2
        assert [t.id for t in self.store.query()] == [kept.id]
        assert self.store.delete_for_account("acc_a") == 0

    def test_clear_all(self):
        """Test removing every record"""
        self.store.append("acc_a", "acc_b", Decimal('1.00'))
        self.store.clear_all()
        assert self.store.count() == 0
