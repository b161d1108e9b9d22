"""Tests for upload URL issuance and video asset registration."""
import re
from urllib.parse import parse_qs, urlparse

import pytest
from sqlalchemy import select

from app.models.video_asset import VideoAsset
from app.services.storage import GB, MB
from conftest import auth_headers, create_user


def upload_body(**overrides):
    body = {
        "fileName": "My Lesson (final).mp4",
        "fileType": "video/mp4",
        "fileSize": 200 * MB,
        "uploadType": "video",
    }
    body.update(overrides)
    return body


@pytest.mark.asyncio
async def test_upload_url_for_video(client, creator_user):
    response = await client.post("/api/upload", json=upload_body(), headers=auth_headers(creator_user))

    assert response.status_code == 200
    data = response.json()
    assert re.fullmatch(rf"videos/{creator_user.uuid}/\d+-My_Lesson__final_\.mp4", data["key"])
    assert data["publicUrl"] == f"https://test-bucket.s3.us-east-1.amazonaws.com/{data['key']}"

    url = urlparse(data["uploadUrl"])
    query = parse_qs(url.query)
    assert url.path.endswith(data["key"])
    assert query["X-Amz-Expires"] == ["3600"]
    # Content type is part of the signature
    assert "content-type" in query["X-Amz-SignedHeaders"][0]


@pytest.mark.asyncio
async def test_upload_url_for_thumbnail(client, creator_user):
    response = await client.post(
        "/api/upload",
        json=upload_body(fileName="cover.png", fileType="image/png", fileSize=2 * MB, uploadType="thumbnail"),
        headers=auth_headers(creator_user),
    )

    assert response.status_code == 200
    assert response.json()["key"].startswith(f"thumbnails/{creator_user.uuid}/")


@pytest.mark.asyncio
async def test_upload_rejects_wrong_type(client, creator_user):
    response = await client.post(
        "/api/upload", json=upload_body(fileType="image/png"), headers=auth_headers(creator_user)
    )

    assert response.status_code == 400
    assert response.json() == {
        "error": "Invalid file type. Allowed types: video/mp4, video/webm, video/quicktime"
    }


@pytest.mark.asyncio
@pytest.mark.parametrize("upload_type,file_type,size,limit", [
    ("video", "video/mp4", 5 * GB + 1, 5120),
    ("preview", "video/webm", 500 * MB + 1, 500),
    ("thumbnail", "image/jpeg", 10 * MB + 1, 10),
])
async def test_upload_rejects_oversized_file(client, creator_user, upload_type, file_type, size, limit):
    response = await client.post(
        "/api/upload",
        json=upload_body(fileType=file_type, fileSize=size, uploadType=upload_type),
        headers=auth_headers(creator_user),
    )

    assert response.status_code == 400
    assert response.json() == {"error": f"File too large. Maximum size: {limit}MB"}


@pytest.mark.asyncio
async def test_upload_accepts_size_at_ceiling(client, creator_user):
    response = await client.post(
        "/api/upload", json=upload_body(fileSize=5 * GB), headers=auth_headers(creator_user)
    )

    assert response.status_code == 200


@pytest.mark.asyncio
@pytest.mark.parametrize("overrides", [{"fileSize": 0}, {"uploadType": "audio"}, {"fileName": ""}])
async def test_upload_rejects_invalid_body(client, creator_user, overrides):
    response = await client.post(
        "/api/upload", json=upload_body(**overrides), headers=auth_headers(creator_user)
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Validation failed"


@pytest.mark.asyncio
async def test_upload_requires_creator_role(client, buyer):
    response = await client.post("/api/upload", json=upload_body(), headers=auth_headers(buyer))

    assert response.status_code == 403
    assert response.json() == {"error": "Creator account required"}


@pytest.mark.asyncio
async def test_upload_requires_auth(client):
    response = await client.post("/api/upload", json=upload_body())

    assert response.status_code == 401


# ── Video asset registration ──────────────────────────────────────────────────

def asset_body(key, **overrides):
    body = {
        "storageKey": key,
        "fileName": "lesson.mp4",
        "fileSize": 1234,
        "mimeType": "video/mp4",
        "duration": 754,
        "width": 1920,
        "height": 1080,
    }
    body.update(overrides)
    return body


@pytest.mark.asyncio
async def test_register_uploaded_video(client, test_db, storage, creator_user):
    key = f"videos/{creator_user.uuid}/1700000000000-lesson.mp4"
    storage.put(key, 1234, "video/mp4")

    response = await client.post("/api/video-assets", json=asset_body(key), headers=auth_headers(creator_user))

    assert response.status_code == 201
    data = response.json()
    assert data["duration"] == 754
    assert data["isProcessed"] is True
    assert "storageKey" not in data

    result = await test_db.execute(select(VideoAsset).where(VideoAsset.uuid == data["uuid"]))
    video_asset = result.scalar_one()
    assert video_asset.storage_key == key
    assert video_asset.uploaded_by == creator_user.uuid


@pytest.mark.asyncio
async def test_register_missing_object(client, creator_user):
    key = f"videos/{creator_user.uuid}/1700000000000-never-uploaded.mp4"

    response = await client.post("/api/video-assets", json=asset_body(key), headers=auth_headers(creator_user))

    assert response.status_code == 400
    assert response.json() == {"error": "Uploaded file not found"}


@pytest.mark.asyncio
async def test_register_size_mismatch(client, storage, creator_user):
    key = f"videos/{creator_user.uuid}/1700000000000-lesson.mp4"
    storage.put(key, 999, "video/mp4")

    response = await client.post("/api/video-assets", json=asset_body(key), headers=auth_headers(creator_user))

    assert response.status_code == 400
    assert response.json() == {"error": "Uploaded file size does not match"}


@pytest.mark.asyncio
async def test_register_type_mismatch(client, storage, creator_user):
    key = f"videos/{creator_user.uuid}/1700000000000-lesson.mp4"
    storage.put(key, 1234, "application/octet-stream")

    response = await client.post("/api/video-assets", json=asset_body(key), headers=auth_headers(creator_user))

    assert response.status_code == 400
    assert response.json() == {"error": "Uploaded file type does not match"}


@pytest.mark.asyncio
async def test_register_someone_elses_key(client, test_db, storage, creator_user):
    other = await create_user(test_db, "other@example.com", role="creator")
    key = f"videos/{other.uuid}/1700000000000-lesson.mp4"
    storage.put(key, 1234, "video/mp4")

    response = await client.post("/api/video-assets", json=asset_body(key), headers=auth_headers(creator_user))

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_admin_may_register_any_key(client, test_db, storage, admin_user, creator_user):
    key = f"videos/{creator_user.uuid}/1700000000000-lesson.mp4"
    storage.put(key, 1234, "video/mp4")

    response = await client.post("/api/video-assets", json=asset_body(key), headers=auth_headers(admin_user))

    assert response.status_code == 201


@pytest.mark.asyncio
async def test_register_twice_rejected(client, storage, creator_user):
    key = f"videos/{creator_user.uuid}/1700000000000-lesson.mp4"
    storage.put(key, 1234, "video/mp4")
    headers = auth_headers(creator_user)

    first = await client.post("/api/video-assets", json=asset_body(key), headers=headers)
    second = await client.post("/api/video-assets", json=asset_body(key), headers=headers)

    assert first.status_code == 201
    assert second.status_code == 400
