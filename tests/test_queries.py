"""
Tests for transaction listing and display direction
"""

import pytest
from datetime import timedelta

from personal_finance.errors import NotFound
from personal_finance.service import FinanceService
from personal_finance.storage import InMemoryStorage
from personal_finance.transactions import TransactionType


class TestTransactionQuery:
    """Test filtering, ordering and Debit/Credit labels"""

    def setup_method(self):
        """Create three accounts and two transfers"""
        self.service = FinanceService(InMemoryStorage())
        user = self.service.users.register_user("Alice", "alice@example.com")
        self.a = self.service.create_account("A", "checking", user.id, balance="1000")
        self.b = self.service.create_account("B", "savings", user.id, balance="500")
        self.c = self.service.create_account("C", "investment", user.id)

        self.first = self.service.transfer(self.a.id, self.b.id, 200, "rent")
        self.second = self.service.transfer(self.b.id, self.a.id, 50, "refund")

    def test_newest_first(self):
        """Test that results are ordered by creation time, newest first"""
        views = self.service.list_transactions()

        assert [v.transaction.id for v in views] == [self.second.id, self.first.id]
        assert self.second.created_at > self.first.created_at

    def test_labels_relative_to_origin(self):
        """Test Debit for the sender and Credit for the receiver"""
        views = self.service.list_transactions(account_id=self.a.id)
        labels = {v.transaction.id: v.display_type for v in views}
        assert labels == {
            self.first.id: TransactionType.DEBIT,
            self.second.id: TransactionType.CREDIT
        }

        views = self.service.list_transactions(account_id=self.b.id)
        labels = {v.transaction.id: v.display_type for v in views}
        assert labels == {
            self.first.id: TransactionType.CREDIT,
            self.second.id: TransactionType.DEBIT
        }

    def test_label_is_not_stored(self):
        """Test that stored records keep the Transfer type"""
        self.service.list_transactions(account_id=self.a.id)

        stored = self.service.transactions.get(self.first.id)
        assert stored.transaction_type == TransactionType.TRANSFER

    def test_no_viewpoint_labels_credit(self):
        """Test that without an account every result is labelled Credit"""
        views = self.service.list_transactions()
        assert {v.display_type for v in views} == {TransactionType.CREDIT}

    def test_account_filter(self):
        """Test that only transfers touching the account are returned"""
        third = self.service.transfer(self.a.id, self.c.id, 10)

        views = self.service.list_transactions(account_id=self.c.id)
        assert [v.transaction.id for v in views] == [third.id]
        assert views[0].display_type == TransactionType.CREDIT

        assert len(self.service.list_transactions(account_id=self.a.id)) == 3
        assert len(self.service.list_transactions(account_id=self.b.id)) == 2

    def test_date_bounds_are_inclusive(self):
        """Test that both date bounds include their endpoint"""
        views = self.service.list_transactions(
            date_from=self.first.created_at, date_to=self.first.created_at
        )
        assert [v.transaction.id for v in views] == [self.first.id]

        views = self.service.list_transactions(date_from=self.second.created_at)
        assert [v.transaction.id for v in views] == [self.second.id]

        views = self.service.list_transactions(date_to=self.second.created_at)
        assert len(views) == 2

    def test_naive_bounds_are_utc(self):
        """Test that naive datetimes are treated as UTC"""
        naive = self.second.created_at.replace(tzinfo=None)

        views = self.service.list_transactions(date_from=naive)
        assert [v.transaction.id for v in views] == [self.second.id]

    def test_combined_filters(self):
        """Test account filter combined with a date range"""
        views = self.service.list_transactions(
            account_id=self.b.id, date_to=self.first.created_at
        )
        assert [v.transaction.id for v in views] == [self.first.id]
        assert views[0].display_type == TransactionType.CREDIT

    def test_empty_result_raises_not_found(self):
        """Test that no match raises NotFound instead of returning []"""
        with pytest.raises(NotFound):
            self.service.list_transactions(account_id=self.c.id)
        with pytest.raises(NotFound):
            self.service.list_transactions(account_id="unknown")
        with pytest.raises(NotFound):
            self.service.list_transactions(date_from=self.second.created_at + timedelta(days=1))

    def test_clear_transactions(self):
        """Test that clearing leaves balances and empties the history"""
        self.service.clear_transactions()

        with pytest.raises(NotFound):
            self.service.list_transactions()
        assert self.service.accounts.load(self.a.id).balance == self.a.balance - 150

    def test_view_to_dict(self):
        """Test the serialized form of a view"""
        view = self.service.list_transactions(account_id=self.a.id)[-1]
        data = view.to_dict()

        assert data['id'] == self.first.id
        assert data['display_type'] == "debit"
        assert data['transaction_type'] == "transfer"
        assert data['amount'] == "200.00"
        assert data['description'] == "rent"
