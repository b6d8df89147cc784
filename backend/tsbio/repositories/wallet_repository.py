"""
Wallet Repository - TSB wallets and ledger (direct SQL)

Uses psycopg2 instead of PostgREST: listings join profiles, summaries
aggregate, and balance adjustments need a row lock so the balance check and
the ledger insert happen in one transaction.

Author: TSBIO
Date: 2026-02-10
"""
import logging
from decimal import Decimal
from typing import List, Optional, Tuple

from tsbio.core.database import get_db_connection_dict_with_retry
from tsbio.core.errors import ApiError
from tsbio.domain.profile import LedgerEntry, Wallet

logger = logging.getLogger(__name__)

WALLET_SELECT = """
    SELECT
        w.id::text AS id,
        w.profile_id::text AS profile_id,
        w.balance,
        w.locked,
        p.username,
        w.created_at,
        w.updated_at
    FROM tsb_wallets w
    LEFT JOIN profiles p ON p.id = w.profile_id
"""

LEDGER_SELECT = """
    SELECT
        l.id::text AS id,
        l.wallet_id::text AS wallet_id,
        l.profile_id::text AS profile_id,
        l.amount,
        l.balance_after,
        l.entry_type,
        l.note,
        l.actor_profile_id::text AS actor_profile_id,
        l.created_at
    FROM tsb_ledger l
"""


class WalletRepository:
    """
    Repository for wallet and ledger data access

    Every balance change goes through adjust_balance().
    """

    def __init__(self, connection_factory=None):
        self._connect = connection_factory or get_db_connection_dict_with_retry

    def find_all(self, search: Optional[str] = None, limit: int = 50, offset: int = 0) -> Tuple[List[Wallet], int]:
        """
        List wallets with owner usernames, largest balance first

        Returns:
            Tuple of (list of wallets, total count)
        """
        conn = self._connect()
        cursor = conn.cursor()

        try:
            where_clauses = []
            params = []

            if search:
                where_clauses.append("(p.username ILIKE %s OR p.email ILIKE %s)")
                params.extend([f"%{search}%", f"%{search}%"])

            where_sql = f"WHERE {' AND '.join(where_clauses)}" if where_clauses else ""

            cursor.execute(f"""
                SELECT COUNT(*) AS total
                FROM tsb_wallets w
                LEFT JOIN profiles p ON p.id = w.profile_id
                {where_sql}
            """, params)
            total = cursor.fetchone()["total"]

            cursor.execute(f"""
                {WALLET_SELECT}
                {where_sql}
                ORDER BY w.balance DESC, w.created_at DESC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])

            wallets = [Wallet(**row) for row in cursor.fetchall()]
            return wallets, total

        finally:
            cursor.close()
            conn.close()

    def find_by_profile(self, profile_id: str) -> Optional[Wallet]:
        conn = self._connect()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                {WALLET_SELECT}
                WHERE w.profile_id = %s
            """, (profile_id,))
            row = cursor.fetchone()
            return Wallet(**row) if row else None

        finally:
            cursor.close()
            conn.close()

    def find_ledger(
        self,
        profile_id: Optional[str] = None,
        entry_type: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[LedgerEntry], int]:
        """Ledger entries newest first, optionally for one profile / entry type"""
        conn = self._connect()
        cursor = conn.cursor()

        try:
            where_clauses = []
            params = []

            if profile_id:
                where_clauses.append("l.profile_id = %s")
                params.append(profile_id)
            if entry_type:
                where_clauses.append("l.entry_type = %s")
                params.append(entry_type)

            where_sql = f"WHERE {' AND '.join(where_clauses)}" if where_clauses else ""

            cursor.execute(f"SELECT COUNT(*) AS total FROM tsb_ledger l {where_sql}", params)
            total = cursor.fetchone()["total"]

            cursor.execute(f"""
                {LEDGER_SELECT}
                {where_sql}
                ORDER BY l.created_at DESC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])

            entries = [LedgerEntry(**row) for row in cursor.fetchall()]
            return entries, total

        finally:
            cursor.close()
            conn.close()

    def adjust_balance(
        self,
        profile_id: str,
        amount: Decimal,
        entry_type: str,
        note: Optional[str],
        actor_profile_id: Optional[str],
    ) -> Tuple[Wallet, LedgerEntry]:
        """
        Credit (amount > 0) or debit (amount < 0) a wallet and write its ledger row

        The wallet row is locked (SELECT ... FOR UPDATE) for the whole
        transaction. A debit may not take the balance below the locked amount.

        Raises:
            ApiError(WALLET_NOT_FOUND) when the profile has no wallet
            ApiError(INSUFFICIENT_BALANCE) when balance + amount < locked
        """
        conn = self._connect()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT id::text AS id, balance, locked
                FROM tsb_wallets
                WHERE profile_id = %s
                FOR UPDATE
            """, (profile_id,))
            wallet = cursor.fetchone()

            if not wallet:
                raise ApiError("WALLET_NOT_FOUND")

            new_balance = Decimal(wallet["balance"]) + amount
            if new_balance < Decimal(wallet["locked"]) or new_balance < 0:
                available = Decimal(wallet["balance"]) - Decimal(wallet["locked"])
                raise ApiError("INSUFFICIENT_BALANCE", detail=f"Available: {available}")

            cursor.execute("""
                UPDATE tsb_wallets
                SET balance = %s, updated_at = NOW()
                WHERE id = %s
            """, (new_balance, wallet["id"]))

            cursor.execute("""
                INSERT INTO tsb_ledger
                    (wallet_id, profile_id, amount, balance_after, entry_type, note, actor_profile_id)
                VALUES (%s, %s, %s, %s, %s, %s, %s)
                RETURNING
                    id::text AS id, wallet_id::text AS wallet_id, profile_id::text AS profile_id,
                    amount, balance_after, entry_type, note,
                    actor_profile_id::text AS actor_profile_id, created_at
            """, (wallet["id"], profile_id, amount, new_balance, entry_type, note, actor_profile_id))
            entry = LedgerEntry(**cursor.fetchone())

            cursor.execute(f"{WALLET_SELECT} WHERE w.id = %s", (wallet["id"],))
            updated = Wallet(**cursor.fetchone())

            conn.commit()
            logger.info(f"Wallet {wallet['id']} adjusted by {amount} ({entry_type}) -> {new_balance}")
            return updated, entry

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def get_summary(self) -> dict:
        """Totals across all wallets and the ledger"""
        conn = self._connect()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT
                    COUNT(*) AS wallet_count,
                    COALESCE(SUM(balance), 0) AS total_balance,
                    COALESCE(SUM(locked), 0) AS total_locked
                FROM tsb_wallets
            """)
            wallets = cursor.fetchone()

            cursor.execute("""
                SELECT entry_type, COUNT(*) AS entries, COALESCE(SUM(amount), 0) AS total_amount
                FROM tsb_ledger
                GROUP BY entry_type
                ORDER BY entry_type
            """)
            by_type = [
                {
                    "entry_type": row["entry_type"],
                    "entries": row["entries"],
                    "total_amount": float(row["total_amount"]),
                }
                for row in cursor.fetchall()
            ]

            return {
                "wallet_count": wallets["wallet_count"],
                "total_balance": float(wallets["total_balance"]),
                "total_locked": float(wallets["total_locked"]),
                "ledger_by_type": by_type,
            }

        finally:
            cursor.close()
            conn.close()
