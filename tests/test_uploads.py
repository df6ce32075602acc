"""Media upload tests."""
from pathlib import Path

import pytest
from httpx import AsyncClient

from zentro.errors import NotFoundError, ValidationError
from zentro.services.storage_service import UploadStorage, sanitize_filename

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


@pytest.mark.parametrize("filename,expected", [
    ("photo.jpg", "photo.jpg"),
    ("../../etc/passwd", "passwd"),
    ("my holiday pic.png", "my-holiday-pic.png"),
    ("", "file"),
])
def test_sanitize_filename(filename, expected):
    assert sanitize_filename(filename) == expected


def test_storage_rejects_wrong_type_and_size(tmp_path):
    storage = UploadStorage(tmp_path, max_bytes=10)
    with pytest.raises(ValidationError):
        storage.save(1, "notes.txt", b"hello", "text/plain")
    with pytest.raises(ValidationError):
        storage.save(1, "big.png", b"x" * 11, "image/png")
    with pytest.raises(ValidationError):
        storage.save(1, "empty.png", b"", "image/png")


def test_storage_layout_and_removal(tmp_path):
    storage = UploadStorage(tmp_path)
    relative = storage.save(7, "front.jpg", b"data", "image/jpeg")
    assert relative.startswith("7/")
    assert relative.endswith("-front.jpg")
    assert storage.public_url(relative) == f"/uploads/{relative}"

    general = storage.save(None, "logo.png", b"data", "image/png")
    assert general.startswith("general/")

    assert storage.remove_property_dir(7) is True
    assert not (tmp_path / "7").exists()
    assert storage.remove_property_dir(7) is False

    with pytest.raises(NotFoundError):
        storage.delete_file(7, "front.jpg")


@pytest.mark.asyncio
async def test_upload_requires_admin(client: AsyncClient):
    response = await client.post("/api/admin/upload", files={"file": ("a.png", PNG, "image/png")})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_upload_attaches_image_and_is_served(client: AsyncClient, auth_headers, create_property, settings):
    property_id = await create_property()

    response = await client.post(
        "/api/admin/upload",
        files={"file": ("front door.png", PNG, "image/png")},
        data={"property_id": str(property_id), "alt": "Front door"},
        headers=auth_headers
    )
    assert response.status_code == 201
    uploaded = response.json()["file"]
    assert uploaded["url"].startswith(f"/uploads/{property_id}/")
    assert uploaded["filename"].endswith("-front-door.png")
    assert uploaded["size"] == len(PNG)
    assert (Path(settings.upload_dir) / str(property_id) / uploaded["filename"]).is_file()

    served = await client.get(uploaded["url"])
    assert served.status_code == 200
    assert served.content == PNG

    prop = (await client.get(f"/api/admin/properties/{property_id}", headers=auth_headers)).json()
    assert prop["images"] == [
        {"url": uploaded["url"], "alt": "Front door", "is_primary": True, "display_order": 0}
    ]


@pytest.mark.asyncio
async def test_upload_rejects_non_media(client: AsyncClient, auth_headers):
    response = await client.post(
        "/api/admin/upload",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        headers=auth_headers
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Only image and video files are allowed"}


@pytest.mark.asyncio
async def test_upload_for_unknown_property(client: AsyncClient, auth_headers):
    response = await client.post(
        "/api/admin/upload",
        files={"file": ("a.png", PNG, "image/png")},
        data={"property_id": "999999"},
        headers=auth_headers
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_upload_multiple(client: AsyncClient, auth_headers, create_property):
    property_id = await create_property()

    response = await client.post(
        "/api/admin/upload/multiple",
        files=[
            ("files", ("one.png", PNG, "image/png")),
            ("files", ("two.png", PNG, "image/png")),
        ],
        data={"property_id": str(property_id)},
        headers=auth_headers
    )
    assert response.status_code == 201
    assert response.json()["message"] == "2 files uploaded successfully"

    prop = (await client.get(f"/api/admin/properties/{property_id}", headers=auth_headers)).json()
    assert [img["is_primary"] for img in prop["images"]] == [True, False]
    assert [img["display_order"] for img in prop["images"]] == [0, 1]


@pytest.mark.asyncio
async def test_delete_upload_promotes_next_primary(client: AsyncClient, auth_headers, create_property):
    property_id = await create_property()
    uploaded = []
    for name in ("one.png", "two.png"):
        response = await client.post(
            "/api/admin/upload",
            files={"file": (name, PNG, "image/png")},
            data={"property_id": str(property_id)},
            headers=auth_headers
        )
        uploaded.append(response.json()["file"])

    response = await client.delete(
        f"/api/admin/upload/{property_id}/{uploaded[0]['filename']}", headers=auth_headers
    )
    assert response.status_code == 200

    prop = (await client.get(f"/api/admin/properties/{property_id}", headers=auth_headers)).json()
    assert [img["url"] for img in prop["images"]] == [uploaded[1]["url"]]
    assert prop["images"][0]["is_primary"] is True

    again = await client.delete(
        f"/api/admin/upload/{property_id}/{uploaded[0]['filename']}", headers=auth_headers
    )
    assert again.status_code == 404


@pytest.mark.asyncio
async def test_deleting_property_removes_its_uploads(client: AsyncClient, auth_headers, create_property, settings):
    property_id = await create_property()
    await client.post(
        "/api/admin/upload",
        files={"file": ("a.png", PNG, "image/png")},
        data={"property_id": str(property_id)},
        headers=auth_headers
    )
    assert (Path(settings.upload_dir) / str(property_id)).is_dir()

    await client.delete(f"/api/admin/properties/{property_id}", headers=auth_headers)
    assert not (Path(settings.upload_dir) / str(property_id)).exists()


@pytest.mark.asyncio
async def test_video_upload_is_listed_on_property(client: AsyncClient, auth_headers, create_property):
    property_id = await create_property()

    response = await client.post(
        "/api/admin/upload",
        files={"file": ("tour.mp4", b"\x00\x00\x00\x18ftypmp42", "video/mp4")},
        data={"property_id": str(property_id)},
        headers=auth_headers
    )
    assert response.status_code == 201
    uploaded = response.json()["file"]

    prop = (await client.get(f"/api/admin/properties/{property_id}", headers=auth_headers)).json()
    assert prop["videos"] == [uploaded["url"]]
    assert prop["images"] == []

    await client.delete(f"/api/admin/upload/{property_id}/{uploaded['filename']}", headers=auth_headers)
    prop = (await client.get(f"/api/admin/properties/{property_id}", headers=auth_headers)).json()
    assert prop["videos"] == []
