"""
API tests for Pi login, /me, password change and wallet administration
"""
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import patch

from supabase import AuthError

from tsbio.core.auth import get_current_user, require_root
from tsbio.core.config import settings
from tsbio.core.errors import ApiError
from tsbio.domain.profile import AuthUser, LedgerEntry, Wallet
from tsbio.main import app


class InvalidCredentials(AuthError):
    def __init__(self):
        Exception.__init__(self, "Invalid login credentials")


class TestPiLogin:

    def test_missing_fields(self, client):
        response = client.post("/api/auth/pi", json={"user": {"uid": "u1"}})

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_PAYLOAD"

    def test_root_uid_gets_admin(self, client):
        response = client.post("/api/auth/pi", json={
            "accessToken": "pi-token",
            "user": {"uid": settings.ROOT_PI_UID, "username": "tsbio"},
        })

        assert response.status_code == 200
        assert response.json()["role"] == "admin"


class TestMe:

    def test_requires_token(self, client):
        response = client.get("/api/auth/me")

        assert response.status_code == 401

    def test_returns_auth_profile_wallet(self, client, member_profile):
        confirmed = datetime(2026, 1, 5, tzinfo=timezone.utc)
        app.dependency_overrides[get_current_user] = lambda: AuthUser(
            id=member_profile.id, email="a@b.vn", email_confirmed_at=confirmed,
        )

        with patch("tsbio.api.auth.ProfileRepository") as repo:
            repo.return_value.find_by_id.return_value = member_profile
            repo.return_value.find_wallet.return_value = {"id": "w1", "balance": 5}
            response = client.get("/api/auth/me")

        body = response.json()
        assert response.status_code == 200
        assert body["auth"]["id"] == member_profile.id
        assert body["auth"]["email_confirmed_at"].startswith("2026-01-05")
        assert body["profile"]["username"] == member_profile.username
        assert body["wallet"]["id"] == "w1"


class TestChangePassword:

    def test_weak_password(self, client):
        app.dependency_overrides[get_current_user] = lambda: AuthUser(id="u1", email="a@b.vn")

        response = client.post("/api/auth/change-password", json={"current_password": "old", "new_password": "short"})

        assert response.status_code == 400
        assert response.json()["error"] == "WEAK_PASSWORD"

    def test_wrong_current_password(self, client):
        app.dependency_overrides[get_current_user] = lambda: AuthUser(id="u1", email="a@b.vn")

        with patch("tsbio.api.auth.new_supabase_anon") as anon, patch("tsbio.api.auth.get_supabase_admin") as admin:
            anon.return_value.auth.sign_in_with_password.side_effect = InvalidCredentials()
            response = client.post("/api/auth/change-password", json={
                "current_password": "wrong-pass",
                "new_password": "a-much-better-one",
            })

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_CURRENT_PASSWORD"
        admin.return_value.auth.admin.update_user_by_id.assert_not_called()

    def test_password_updated(self, client):
        app.dependency_overrides[get_current_user] = lambda: AuthUser(id="u1", email="a@b.vn")

        with patch("tsbio.api.auth.new_supabase_anon"), patch("tsbio.api.auth.get_supabase_admin") as admin:
            response = client.post("/api/auth/change-password", json={
                "current_password": "old-password",
                "new_password": "a-much-better-one",
            })

        assert response.json() == {"ok": True}
        admin.return_value.auth.admin.update_user_by_id.assert_called_once_with("u1", {"password": "a-much-better-one"})


class TestWallets:

    def test_adjust_insufficient_balance(self, client, root_ctx):
        app.dependency_overrides[require_root] = lambda: root_ctx

        with patch("tsbio.api.admin_wallets.WalletRepository") as repo, \
                patch("tsbio.api.admin_wallets.AuditRepository") as audit:
            repo.return_value.adjust_balance.side_effect = ApiError("INSUFFICIENT_BALANCE", detail="Available: 5")
            response = client.post("/api/admin/wallets/p1/adjust", json={"amount": "-10"})

        assert response.status_code == 400
        assert response.json()["error"] == "INSUFFICIENT_BALANCE"
        audit.return_value.write.assert_not_called()

    def test_adjust_zero_rejected(self, client, root_ctx):
        app.dependency_overrides[require_root] = lambda: root_ctx

        response = client.post("/api/admin/wallets/p1/adjust", json={"amount": 0})

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"

    def test_adjust_credit(self, client, root_ctx):
        app.dependency_overrides[require_root] = lambda: root_ctx
        wallet = Wallet(id="w1", profile_id="p1", balance=Decimal("60"), locked=Decimal("10"))
        entry = LedgerEntry(
            id="l1", wallet_id="w1", profile_id="p1", amount=Decimal("50"),
            balance_after=Decimal("60"), entry_type="admin_adjust",
        )

        with patch("tsbio.api.admin_wallets.WalletRepository") as repo, \
                patch("tsbio.api.admin_wallets.AuditRepository") as audit:
            repo.return_value.adjust_balance.return_value = (wallet, entry)
            response = client.post("/api/admin/wallets/p1/adjust", json={"amount": 50, "note": "thưởng"})

        body = response.json()
        assert response.status_code == 200
        assert body["wallet"]["available"] == 50.0
        assert body["entry"]["amount"] == 50.0
        args = repo.return_value.adjust_balance.call_args.args
        assert args[0] == "p1"
        assert args[1] == Decimal("50")
        assert args[4] == root_ctx.profile_id
        assert audit.return_value.write.call_args.args[1] == "wallet.adjust"

    def test_wallet_not_found(self, client, root_ctx):
        app.dependency_overrides[require_root] = lambda: root_ctx

        with patch("tsbio.api.admin_wallets.WalletRepository") as repo:
            repo.return_value.find_by_profile.return_value = None
            response = client.get("/api/admin/wallets/p404")

        assert response.status_code == 404
        assert response.json()["error"] == "WALLET_NOT_FOUND"


class TestApp:

    def test_root(self, client):
        assert client.get("/").json()["status"] == "online"

    def test_www_redirects_to_canonical_host(self, client):
        response = client.get("/api/public/app-settings?x=1", headers={"host": "www.tsbio.life"}, follow_redirects=False)

        assert response.status_code == 308
        assert response.headers["location"] == "https://tsbio.life/api/public/app-settings?x=1"
