"""Tests for image uploads and upload cleanup."""

import base64
import pytest
from pathlib import Path
from postdesk.core.config import settings
from postdesk.core.errors import ValidationError
from postdesk.services.uploads import delete_upload, local_upload_path, store_image
from conftest import make_post

# 1x1 images
PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)
GIF_BYTES = base64.b64decode("R0lGODlhAQABAIAAAAAAAP///yH5BAEAAAAALAAAAAABAAEAAAIBRAA7")
HTML_BYTES = b"<html><body><script>alert(document.cookie)</script></body></html>"


def upload(client, content=PNG_BYTES, filename="photo.png", content_type="image/png"):
    return client.post(
        "/api/upload", files={"file": (filename, content, content_type)}
    )


@pytest.mark.unit
class TestUploadEndpoint:
    """POST /api/upload"""

    def test_upload_image(self, authenticated_client, upload_root):
        response = upload(authenticated_client)

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["file_url"].startswith("/uploads/")
        assert data["file_url"].endswith(".png")

        stored = upload_root / data["file_url"].rsplit("/", 1)[1]
        assert stored.read_bytes() == PNG_BYTES

    def test_uploads_get_unique_names(self, authenticated_client, upload_root):
        first = upload(authenticated_client).json()["file_url"]
        second = upload(authenticated_client).json()["file_url"]

        assert first != second
        assert len(list(upload_root.iterdir())) == 2

    def test_requires_authentication(self, client, upload_root):
        assert upload(client).status_code == 401
        assert list(upload_root.iterdir()) == []

    def test_missing_file(self, authenticated_client, upload_root):
        response = authenticated_client.post("/api/upload")

        assert response.status_code == 400
        assert response.json() == {"error": "No file uploaded"}

    def test_rejects_non_image(self, authenticated_client, upload_root):
        response = upload(
            authenticated_client, b"%PDF-1.7", filename="doc.pdf", content_type="application/pdf"
        )

        assert response.status_code == 400
        assert response.json()["error"].startswith("File type not supported")
        assert list(upload_root.iterdir()) == []

    def test_rejects_oversized_file(self, authenticated_client, upload_root, monkeypatch):
        monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE", 16)

        response = upload(authenticated_client)

        assert response.status_code == 400
        assert "too large" in response.json()["error"]
        assert list(upload_root.iterdir()) == []

    def test_html_declared_as_image_rejected(self, authenticated_client, upload_root):
        response = upload(authenticated_client, HTML_BYTES, filename="pwn.html")

        assert response.status_code == 400
        assert response.json()["error"].startswith("File type not supported")
        assert list(upload_root.iterdir()) == []

    def test_client_extension_ignored(self, authenticated_client, upload_root):
        response = upload(authenticated_client, filename="x.html")

        assert response.status_code == 200
        file_url = response.json()["file_url"]
        assert file_url.endswith(".png")
        assert [p.suffix for p in upload_root.iterdir()] == [".png"]


@pytest.mark.unit
class TestUploadStorage:
    def test_extension_follows_detected_type(self, upload_root):
        assert store_image(PNG_BYTES, "no-extension", "image/png").endswith(".png")
        assert store_image(GIF_BYTES, "photo.png", "image/png").endswith(".gif")

    def test_declared_type_does_not_decide_extension(self, upload_root):
        url = store_image(PNG_BYTES, "evil.ph/p", "image/jpeg")

        assert url.endswith(".png")

    @pytest.mark.parametrize(
        "content",
        [HTML_BYTES, b"<svg xmlns=\"http://www.w3.org/2000/svg\"></svg>", b"plain text"],
    )
    def test_non_image_bytes_rejected(self, upload_root, content):
        with pytest.raises(ValidationError):
            store_image(content, "photo.png", "image/png")

        assert list(upload_root.iterdir()) == []

    def test_empty_content(self, upload_root):
        with pytest.raises(ValidationError):
            store_image(b"", "photo.png", "image/png")

    def test_local_upload_path(self, upload_root):
        assert local_upload_path("/uploads/abc.png") == upload_root / "abc.png"
        assert local_upload_path("/uploads/../../etc/passwd") == upload_root / "passwd"
        assert local_upload_path("https://cdn.example.com/abc.png") is None
        assert local_upload_path(None) is None

    def test_delete_upload(self, upload_root):
        url = store_image(PNG_BYTES, "photo.png", "image/png")

        assert delete_upload(url) is True
        assert delete_upload(url) is False
        assert delete_upload("https://cdn.example.com/abc.png") is False

    def test_delete_upload_filesystem_error(self, upload_root, monkeypatch):
        url = store_image(PNG_BYTES, "photo.png", "image/png")

        def read_only(self, *args, **kwargs):
            raise PermissionError("read-only upload volume")

        monkeypatch.setattr(Path, "unlink", read_only)

        assert delete_upload(url) is False


@pytest.mark.unit
class TestUploadCleanup:
    """Featured images are removed once nothing points at them."""

    def test_purge_removes_image(self, authenticated_client, db_session, test_user, upload_root):
        url = store_image(PNG_BYTES, "photo.png", "image/png")
        post = make_post(db_session, test_user, "With image", featured_image=url)

        authenticated_client.delete(f"/api/posts/{post.id}")

        assert local_upload_path(url).exists() is False

    def test_shared_image_survives_purge(
        self, authenticated_client, db_session, test_user, upload_root
    ):
        url = store_image(PNG_BYTES, "photo.png", "image/png")
        post = make_post(db_session, test_user, "First", featured_image=url)
        make_post(db_session, test_user, "Second", featured_image=url)

        authenticated_client.delete(f"/api/posts/{post.id}")

        assert local_upload_path(url).exists()

    def test_trash_keeps_image(self, authenticated_client, db_session, test_user, upload_root):
        url = store_image(PNG_BYTES, "photo.png", "image/png")
        post = make_post(db_session, test_user, "With image", featured_image=url)

        authenticated_client.put(f"/api/posts/{post.id}/trash")

        assert local_upload_path(url).exists()

    def test_replaced_image_is_removed(
        self, authenticated_client, db_session, test_user, upload_root
    ):
        old_url = store_image(PNG_BYTES, "old.png", "image/png")
        new_url = store_image(PNG_BYTES, "new.png", "image/png")
        post = make_post(db_session, test_user, "With image", featured_image=old_url)

        response = authenticated_client.put(
            f"/api/posts/{post.id}", json={"featured_image": new_url}
        )

        assert response.status_code == 200
        assert response.json()["featured_image"] == new_url
        assert not local_upload_path(old_url).exists()
        assert local_upload_path(new_url).exists()

    def test_purge_survives_unlink_failure(
        self, authenticated_client, db_session, test_user, upload_root, monkeypatch
    ):
        url = store_image(PNG_BYTES, "photo.png", "image/png")
        post = make_post(db_session, test_user, "With image", featured_image=url)

        def read_only(self, *args, **kwargs):
            raise PermissionError("read-only upload volume")

        monkeypatch.setattr(Path, "unlink", read_only)

        response = authenticated_client.delete(f"/api/posts/{post.id}")

        assert response.status_code == 200
        assert authenticated_client.get(f"/api/posts/{post.id}").status_code == 404
        assert local_upload_path(url).exists()
