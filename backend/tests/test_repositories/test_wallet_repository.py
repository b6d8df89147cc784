"""
Unit tests for WalletRepository

The psycopg2 connection is a MagicMock; tests check the transaction
handling around balance adjustments.
"""
from decimal import Decimal
from unittest.mock import MagicMock, Mock

import pytest

from tsbio.core.errors import ApiError
from tsbio.repositories.wallet_repository import WalletRepository


@pytest.fixture
def conn():
    conn = MagicMock()
    conn.cursor.return_value = MagicMock()
    return conn


@pytest.fixture
def cursor(conn):
    return conn.cursor.return_value


@pytest.fixture
def repo(conn):
    return WalletRepository(connection_factory=Mock(return_value=conn))


def wallet_row(balance="100", locked="30"):
    return {"id": "w1", "balance": Decimal(balance), "locked": Decimal(locked)}


class TestAdjustBalance:

    def test_credit_writes_ledger_and_commits(self, repo, conn, cursor):
        cursor.fetchone.side_effect = [
            wallet_row(),
            {
                "id": "l1", "wallet_id": "w1", "profile_id": "p1", "amount": Decimal("50"),
                "balance_after": Decimal("150"), "entry_type": "admin_adjust", "note": "thưởng",
                "actor_profile_id": "root-1", "created_at": None,
            },
            {"id": "w1", "profile_id": "p1", "balance": Decimal("150"), "locked": Decimal("30"), "username": "nhavuon"},
        ]

        wallet, entry = repo.adjust_balance("p1", Decimal("50"), "admin_adjust", "thưởng", "root-1")

        assert wallet.balance == Decimal("150")
        assert entry.balance_after == Decimal("150")
        assert "FOR UPDATE" in cursor.execute.call_args_list[0].args[0]
        update_params = cursor.execute.call_args_list[1].args[1]
        assert update_params == (Decimal("150"), "w1")
        conn.commit.assert_called_once()
        conn.rollback.assert_not_called()
        conn.close.assert_called_once()

    def test_debit_below_locked_rejected(self, repo, conn, cursor):
        cursor.fetchone.return_value = wallet_row(balance="100", locked="30")

        with pytest.raises(ApiError) as exc:
            repo.adjust_balance("p1", Decimal("-71"), "admin_adjust", None, "root-1")

        assert exc.value.code == "INSUFFICIENT_BALANCE"
        assert exc.value.status_code == 400
        # Only the locking SELECT ran: no balance update, no ledger row
        assert cursor.execute.call_count == 1
        conn.commit.assert_not_called()
        conn.rollback.assert_called_once()

    def test_debit_down_to_locked_allowed(self, repo, conn, cursor):
        cursor.fetchone.side_effect = [
            wallet_row(balance="100", locked="30"),
            {
                "id": "l1", "wallet_id": "w1", "profile_id": "p1", "amount": Decimal("-70"),
                "balance_after": Decimal("30"), "entry_type": "admin_adjust",
            },
            {"id": "w1", "profile_id": "p1", "balance": Decimal("30"), "locked": Decimal("30")},
        ]

        wallet, _ = repo.adjust_balance("p1", Decimal("-70"), "admin_adjust", None, "root-1")

        assert wallet.available == Decimal("0")
        conn.commit.assert_called_once()

    def test_missing_wallet(self, repo, conn, cursor):
        cursor.fetchone.return_value = None

        with pytest.raises(ApiError) as exc:
            repo.adjust_balance("nobody", Decimal("10"), "admin_adjust", None, "root-1")

        assert exc.value.code == "WALLET_NOT_FOUND"
        assert exc.value.status_code == 404
        conn.rollback.assert_called_once()


class TestQueries:

    def test_find_all_with_search(self, repo, cursor):
        cursor.fetchone.return_value = {"total": 1}
        cursor.fetchall.return_value = [
            {"id": "w1", "profile_id": "p1", "balance": Decimal("5"), "locked": Decimal("0"), "username": "an"},
        ]

        wallets, total = repo.find_all(search="an", limit=10, offset=0)

        assert total == 1
        assert wallets[0].username == "an"
        count_params = cursor.execute.call_args_list[0].args[1]
        assert count_params == ["%an%", "%an%"]
        list_params = cursor.execute.call_args_list[1].args[1]
        assert list_params == ["%an%", "%an%", 10, 0]

    def test_find_by_profile_none(self, repo, cursor):
        cursor.fetchone.return_value = None

        assert repo.find_by_profile("p1") is None

    def test_summary(self, repo, cursor):
        cursor.fetchone.return_value = {"wallet_count": 2, "total_balance": Decimal("150"), "total_locked": Decimal("30")}
        cursor.fetchall.return_value = [{"entry_type": "admin_adjust", "entries": 3, "total_amount": Decimal("150")}]

        summary = repo.get_summary()

        assert summary["total_balance"] == 150.0
        assert summary["ledger_by_type"][0]["entries"] == 3
