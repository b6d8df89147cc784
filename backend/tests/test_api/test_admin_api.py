"""
API tests for root-only admin routes and the media library

Auth dependencies are replaced through app.dependency_overrides; data
access is patched at the router module.
"""
from unittest.mock import patch

from tsbio.core.auth import (
    get_current_user,
    require_media_editor,
    require_media_manager,
    require_root,
    require_storage_admin,
)
from tsbio.domain.profile import AuthUser, Profile
from tsbio.domain.settings import BannerSettings
from tsbio.main import app


class TestRootGate:

    def test_banner_forbidden_for_non_root(self, client):
        app.dependency_overrides[get_current_user] = lambda: AuthUser(id="admin-1")

        with patch("tsbio.core.auth.ProfileRepository") as profiles:
            profiles.return_value.find_by_id.return_value = Profile(id="admin-1", role="admin", level="basic")
            response = client.get("/api/admin/banner")

        assert response.status_code == 403
        assert response.json() == {"ok": False, "error": "FORBIDDEN_NOT_ROOT", "detail": None}

    def test_banner_requires_token(self, client):
        response = client.put("/api/admin/banner", json={"headlineTop": "X"})

        assert response.status_code == 401
        assert response.json()["error"] == "UNAUTHORIZED"

    def test_ping_missing_header(self, client):
        response = client.get("/api/admin/ping")

        assert response.status_code == 401
        assert response.json()["error"] == "MISSING_PROFILE_ID"

    def test_ping_root(self, client, root_profile):
        with patch("tsbio.core.auth.ProfileRepository") as profiles:
            profiles.return_value.find_by_id.return_value = root_profile
            response = client.get("/api/admin/ping", headers={"x-profile-id": root_profile.id})

        assert response.status_code == 200
        assert response.json() == {"ok": True, "role": "root_admin"}

    def test_ping_unknown_profile(self, client):
        with patch("tsbio.core.auth.ProfileRepository") as profiles:
            profiles.return_value.find_by_id.return_value = None
            response = client.get("/api/admin/ping", headers={"x-profile-id": "ghost"})

        assert response.status_code == 403
        assert response.json()["error"] == "USER_NOT_FOUND"


class TestBanner:

    def test_put_banner(self, client, root_ctx):
        app.dependency_overrides[require_root] = lambda: root_ctx

        with patch("tsbio.api.admin.SettingsService") as service:
            service.return_value.update_banner.return_value = BannerSettings(headlineTop="Cứu vườn")
            response = client.put("/api/admin/banner", json={"headlineTop": "Cứu vườn"})

        assert response.status_code == 200
        assert response.json()["settings"]["headlineTop"] == "Cứu vườn"
        payload, actor = service.return_value.update_banner.call_args.args
        assert payload.model_dump(exclude_unset=True) == {"headlineTop": "Cứu vườn"}
        assert actor == root_ctx.profile_id


class TestUsers:

    def test_list_users(self, client, root_ctx, member_profile):
        app.dependency_overrides[require_root] = lambda: root_ctx

        with patch("tsbio.api.admin.ProfileRepository") as repo:
            repo.return_value.find_all.return_value = ([member_profile], 1)
            response = client.get("/api/admin/users?search=vuon")

        body = response.json()
        assert response.status_code == 200
        assert body["total"] == 1
        assert set(body["items"][0]) == {"id", "username", "email", "role", "level", "created_at"}

    def test_root_cannot_demote_self(self, client, root_ctx):
        app.dependency_overrides[require_root] = lambda: root_ctx

        response = client.patch(f"/api/admin/users/{root_ctx.profile_id}", json={"role": "member"})

        assert response.status_code == 403

    def test_invalid_role_is_validation_error(self, client, root_ctx):
        app.dependency_overrides[require_root] = lambda: root_ctx

        response = client.patch("/api/admin/users/member-1", json={"role": "god"})

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"


class TestMediaLibrary:

    def test_tmp_delete_other_users_path(self, client, editor_ctx):
        app.dependency_overrides[require_media_editor] = lambda: editor_ctx

        with patch("tsbio.api.admin_media.MediaStorage") as storage:
            response = client.delete("/api/admin/media/tmp-upload", params={"path": "uploads/tmp_someone_image_1_ab.jpg"})

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_PATH"
        storage.return_value.remove.assert_not_called()

    def test_tmp_delete_own_path(self, client, editor_ctx):
        app.dependency_overrides[require_media_editor] = lambda: editor_ctx
        path = f"uploads/tmp_{editor_ctx.user.id}_image_1_ab.jpg"

        with patch("tsbio.api.admin_media.MediaStorage") as storage:
            response = client.delete("/api/admin/media/tmp-upload", params={"path": path})

        assert response.status_code == 200
        storage.return_value.remove.assert_called_once_with([path])

    def test_tmp_upload_namespaces_path(self, client, editor_ctx):
        app.dependency_overrides[require_media_editor] = lambda: editor_ctx

        with patch("tsbio.api.admin_media.MediaStorage") as storage:
            storage.return_value.public_url.side_effect = lambda p: "https://cdn/" + p
            response = client.post(
                "/api/admin/media/tmp-upload?kind=image",
                files={"file": ("la.jpg", b"jpegdata", "image/jpeg")},
            )

        item = response.json()["item"]
        assert response.status_code == 200
        assert item["path"].startswith(f"uploads/tmp_{editor_ctx.user.id}_image_")
        assert item["size"] == 8
        assert item["contentType"] == "image/jpeg"

    def test_tmp_upload_wrong_type(self, client, editor_ctx):
        app.dependency_overrides[require_media_editor] = lambda: editor_ctx

        with patch("tsbio.api.admin_media.MediaStorage"):
            response = client.post(
                "/api/admin/media/tmp-upload?kind=video",
                files={"file": ("la.jpg", b"jpegdata", "image/jpeg")},
            )

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_FILE_TYPE"

    def test_move_same_path_is_noop(self, client, root_ctx):
        app.dependency_overrides[require_storage_admin] = lambda: root_ctx

        with patch("tsbio.api.admin_media.MediaStorage") as storage:
            storage.return_value.public_url.return_value = "https://cdn/banners/a.jpg"
            response = client.patch("/api/admin/media/object", json={"from": "banners/a.jpg", "to": "banners/a.jpg"})

        assert response.status_code == 200
        storage.return_value.move.assert_not_called()

    def test_delete_object_rejects_traversal(self, client, root_ctx):
        app.dependency_overrides[require_storage_admin] = lambda: root_ctx

        response = client.delete("/api/admin/media/object", params={"path": "../secrets"})

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_PATH"

    def test_upload_root_only_images(self, client, root_ctx):
        app.dependency_overrides[require_root] = lambda: root_ctx

        with patch("tsbio.api.admin_media.MediaStorage"):
            response = client.post(
                "/api/admin/media/upload?folder=banners",
                files={"file": ("clip.mp4", b"x", "video/mp4")},
            )

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_IMAGE"

    def test_list_clamps_limit_and_flags_folders(self, client, editor_ctx):
        app.dependency_overrides[require_media_manager] = lambda: editor_ctx

        with patch("tsbio.api.admin_media.MediaStorage") as storage:
            storage.return_value.list.return_value = [
                {"name": "a.jpg", "id": "1", "metadata": {"size": 3, "mimetype": "image/jpeg"}},
                {"name": "folder", "id": None},
            ]
            storage.return_value.public_url.side_effect = lambda p: "https://cdn/" + p
            response = client.get("/api/admin/media/list?limit=500")

        storage.return_value.list.assert_called_once_with("uploads/", 100)
        items = response.json()["items"]
        assert [i["path"] for i in items] == ["uploads/a.jpg", "uploads/folder"]
        assert [i["isFolder"] for i in items] == [False, True]
        assert items[0]["publicUrl"] == "https://cdn/uploads/a.jpg"
        assert items[1]["publicUrl"] is None

    def test_list_skips_placeholder(self, client, editor_ctx):
        app.dependency_overrides[require_media_manager] = lambda: editor_ctx

        with patch("tsbio.api.admin_media.MediaStorage") as storage:
            storage.return_value.list.return_value = [{"name": ".emptyFolderPlaceholder", "id": "p"}]
            response = client.get("/api/admin/media/list?prefix=banners/")

        assert response.json()["items"] == []
