"""
File uploads.

Tests cover:
- Images and documents stored under their own folder and served back
- Unsupported types, size limit and missing files
"""
from app.core.config import settings
from tests.conftest import API


def upload(client, headers, filename, content, content_type):
    return client.post(
        f"{API}/uploads/",
        files={"file": (filename, content, content_type)},
        headers=headers,
    )


def test_upload_and_read_back_document(client, franchise_headers):
    response = upload(client, franchise_headers, "case-paper.pdf", b"%PDF-1.4 test", "application/pdf")

    assert response.status_code == 201
    body = response.json()
    assert body["url"] == f"{API}/uploads/documents/{body['filename']}"
    assert body["size"] == 13

    served = client.get(body["url"], headers=franchise_headers)
    assert served.status_code == 200
    assert served.content == b"%PDF-1.4 test"


def test_images_go_to_their_folder(client, franchise_headers):
    response = upload(client, franchise_headers, "scan.PNG", b"\x89PNG....", "image/png")

    assert response.status_code == 201
    assert response.json()["filename"].endswith(".png")
    assert "/uploads/images/" in response.json()["url"]


def test_unsupported_type(client, franchise_headers):
    response = upload(client, franchise_headers, "script.exe", b"MZ", "application/octet-stream")

    assert response.status_code == 400


def test_file_too_large(client, franchise_headers, monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE_MB", 0)

    response = upload(client, franchise_headers, "big.pdf", b"x", "application/pdf")

    assert response.status_code == 413
    assert response.json()["detail"] == "File too large. Maximum size is 0 MB"


def test_upload_requires_login(client, db):
    response = upload(client, {}, "case-paper.pdf", b"%PDF", "application/pdf")

    assert response.status_code == 401


def test_missing_file(client, franchise_headers):
    response = client.get(f"{API}/uploads/documents/nothing-here.pdf", headers=franchise_headers)

    assert response.status_code == 404
