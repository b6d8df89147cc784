"""
Admin Wallets API Endpoints (root only)
TSB wallet balances, manual adjustments, and the ledger

Author: TSBIO
Date: 2026-02-10
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from tsbio.core.auth import require_root
from tsbio.core.errors import ApiError
from tsbio.domain.profile import AdminContext, WalletAdjustment
from tsbio.repositories.audit_repository import AuditRepository
from tsbio.repositories.wallet_repository import WalletRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin Wallets"])


def _wallet_dict(wallet) -> dict:
    data = wallet.model_dump(mode="json")
    data["balance"] = float(wallet.balance)
    data["locked"] = float(wallet.locked)
    data["available"] = float(wallet.available)
    return data


def _entry_dict(entry) -> dict:
    data = entry.model_dump(mode="json")
    data["amount"] = float(entry.amount)
    data["balance_after"] = float(entry.balance_after)
    return data


@router.get("/wallets")
async def list_wallets(
    search: Optional[str] = Query(None, description="Search username or email"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    ctx: AdminContext = Depends(require_root),
):
    repo = WalletRepository()
    wallets, total = repo.find_all(search=search, limit=limit, offset=offset)

    return {
        "status": "success",
        "total": total,
        "count": len(wallets),
        "data": [_wallet_dict(w) for w in wallets],
        "summary": repo.get_summary(),
    }


@router.get("/wallets/{profile_id}")
async def get_wallet(profile_id: str, ctx: AdminContext = Depends(require_root)):
    repo = WalletRepository()
    wallet = repo.find_by_profile(profile_id)
    if not wallet:
        raise ApiError("WALLET_NOT_FOUND")

    entries, _ = repo.find_ledger(profile_id=profile_id, limit=20)
    return {
        "status": "success",
        "data": _wallet_dict(wallet),
        "recent_ledger": [_entry_dict(e) for e in entries],
    }


@router.post("/wallets/{profile_id}/adjust")
async def adjust_wallet(profile_id: str, body: WalletAdjustment, ctx: AdminContext = Depends(require_root)):
    """
    Manual credit (amount > 0) or debit (amount < 0)

    Fails with INSUFFICIENT_BALANCE when a debit would go below the locked amount.
    """
    wallet, entry = WalletRepository().adjust_balance(
        profile_id,
        body.amount,
        body.entry_type,
        body.note,
        ctx.profile_id,
    )

    AuditRepository().write(ctx.profile_id, "wallet.adjust", target=profile_id, meta={
        "amount": str(body.amount),
        "entry_type": body.entry_type,
        "ledger_id": entry.id,
    })
    return {"ok": True, "wallet": _wallet_dict(wallet), "entry": _entry_dict(entry)}


@router.get("/ledger")
async def list_ledger(
    profile_id: Optional[str] = Query(None),
    entry_type: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    ctx: AdminContext = Depends(require_root),
):
    entries, total = WalletRepository().find_ledger(
        profile_id=profile_id,
        entry_type=entry_type,
        limit=limit,
        offset=offset,
    )
    return {
        "status": "success",
        "total": total,
        "count": len(entries),
        "data": [_entry_dict(e) for e in entries],
    }
