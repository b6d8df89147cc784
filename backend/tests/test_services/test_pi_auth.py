"""
Unit tests for Pi Network login
"""
import httpx
import pytest

from tsbio.core.config import settings
from tsbio.core.errors import ApiError
from tsbio.services.pi_auth import PiAuthService, PiLoginPayload


def payload(uid="pi-user-1", username="nhavuon", token="pi-token"):
    return PiLoginPayload(accessToken=token, user={"uid": uid, "username": username})


def pi_client(handler):
    return httpx.Client(transport=httpx.MockTransport(handler))


class TestPiLogin:

    def test_regular_user(self):
        session = PiAuthService().login(payload())

        assert session["uid"] == "pi-user-1"
        assert session["username"] == "nhavuon"
        assert session["accessToken"] == "pi-token"
        assert session["role"] == "user"
        assert session["createdAt"].endswith("Z")

    def test_root_uid_is_admin(self):
        session = PiAuthService().login(payload(uid=settings.ROOT_PI_UID))

        assert session["role"] == "admin"

    @pytest.mark.parametrize("body", [
        {},
        {"accessToken": "t"},
        {"accessToken": "t", "user": {"uid": "u1"}},
        {"user": {"uid": "u1", "username": "a"}},
    ])
    def test_missing_fields(self, body):
        with pytest.raises(ApiError) as exc:
            PiAuthService().login(PiLoginPayload(**body))

        assert exc.value.code == "INVALID_PAYLOAD"
        assert exc.value.status_code == 400
        assert exc.value.detail == "Missing accessToken or user fields."


class TestAccessTokenVerification:

    @pytest.fixture(autouse=True)
    def verify_on(self, monkeypatch):
        monkeypatch.setattr(settings, "PI_VERIFY_ACCESS_TOKEN", True)

    def test_token_matches_uid(self):
        def handler(request):
            assert request.headers["Authorization"] == "Bearer pi-token"
            assert request.url.path == "/v2/me"
            return httpx.Response(200, json={"uid": "pi-user-1", "username": "nhavuon"})

        session = PiAuthService(http_client=pi_client(handler)).login(payload())

        assert session["uid"] == "pi-user-1"

    def test_uid_mismatch(self):
        client = pi_client(lambda request: httpx.Response(200, json={"uid": "someone-else"}))

        with pytest.raises(ApiError) as exc:
            PiAuthService(http_client=client).login(payload())

        assert exc.value.code == "PI_TOKEN_INVALID"
        assert exc.value.status_code == 401

    def test_rejected_token(self):
        client = pi_client(lambda request: httpx.Response(401, json={"error": "invalid"}))

        with pytest.raises(ApiError) as exc:
            PiAuthService(http_client=client).login(payload())

        assert exc.value.code == "PI_TOKEN_INVALID"

    def test_pi_api_down(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ApiError) as exc:
            PiAuthService(http_client=pi_client(handler)).login(payload())

        assert exc.value.code == "PI_API_UNAVAILABLE"
        assert exc.value.status_code == 502

    @pytest.mark.parametrize("response", [
        httpx.Response(200, text="<html>maintenance</html>"),
        httpx.Response(200, json=["pi-user-1"]),
    ])
    def test_malformed_body(self, response):
        client = pi_client(lambda request: response)

        with pytest.raises(ApiError) as exc:
            PiAuthService(http_client=client).login(payload())

        assert exc.value.code == "PI_API_UNAVAILABLE"
