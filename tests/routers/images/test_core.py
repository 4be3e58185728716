"""Tests for core image router endpoints.

This module tests the core image operations:
- GET /api/v1/images (list_images)
- GET /api/v1/images/{id} (get_image)
- GET /api/v1/images/{id}/file (get_image_file)
- PUT /api/v1/images/{id}/edit (edit_image)
- DELETE /api/v1/images/{id} (delete_image)
- POST /api/v1/images/batch/delete (batch_delete_images)
"""

import asyncio
import base64
import io
from datetime import datetime

import pytest
from fastapi import HTTPException
from fastapi.responses import FileResponse
from PIL import Image as PILImage

from photomind.image import ThumbnailGenerator
from photomind.metadata import Image, image_tags
from photomind.routers.images.core import (
    BatchDeleteRequest,
    EditImageRequest,
    batch_delete_images,
    delete_image,
    edit_image,
    get_image,
    get_image_file,
    list_images,
)
from photomind.tagging import add_user_tag
from conftest import make_image


def _list(db, user, tags=None, month=None, camera=None):
    return asyncio.run(list_images(tags=tags, month=month, camera=camera, user=user, db=db))


def _stored_image(db, user, storage, data, name="1-1.jpg"):
    path = storage.save_original(name, data)
    thumb = storage.thumbnails_dir / name
    thumb.write_bytes(data)
    return make_image(db, user, file_path=str(path), thumbnail_path=str(thumb))


class TestListImages:
    """Tests for GET /api/v1/images endpoint."""

    def test_lists_only_own_images_with_tags(self, test_db, user, other_user):
        image = make_image(test_db, user, taken_at=datetime(2025, 10, 31, 23, 59, 59))
        add_user_tag(test_db, image, "beach")
        test_db.commit()
        make_image(test_db, other_user)

        response = _list(test_db, user)

        assert response["count"] == 1
        payload = response["images"][0]
        assert payload["id"] == image.id
        assert payload["taken_at"] == "2025-10-31T23:59:59"
        assert payload["tags"] == [{"id": image.tags[0].id, "name": "beach", "source": "user"}]

    def test_filters_by_tags_month_and_camera(self, test_db, user):
        match = make_image(test_db, user, camera_make="Canon", taken_at=datetime(2025, 10, 3))
        add_user_tag(test_db, match, "a")
        add_user_tag(test_db, match, "b")
        other = make_image(test_db, user, camera_make="Canon", taken_at=datetime(2025, 10, 3))
        add_user_tag(test_db, other, "a")
        test_db.commit()

        response = _list(test_db, user, tags="a,b", month="2025-10", camera="canon")

        assert [item["id"] for item in response["images"]] == [match.id]

    def test_malformed_month_is_bad_request(self, test_db, user):
        with pytest.raises(HTTPException) as exc_info:
            _list(test_db, user, month="2025-13")
        assert exc_info.value.status_code == 400


class TestGetImage:
    """Tests for GET /api/v1/images/{id} endpoint."""

    def test_returns_owned_image(self, test_db, user):
        image = make_image(test_db, user, camera_make="Sony")
        payload = asyncio.run(get_image(image_id=image.id, user=user, db=test_db))
        assert payload["camera_make"] == "Sony"
        assert payload["user_id"] == user.id

    def test_other_users_image_is_not_found(self, test_db, user, other_user):
        image = make_image(test_db, other_user)
        with pytest.raises(HTTPException) as exc_info:
            asyncio.run(get_image(image_id=image.id, user=user, db=test_db))
        assert exc_info.value.status_code == 404

    def test_file_download(self, test_db, user, storage, sample_image_data):
        image = _stored_image(test_db, user, storage, sample_image_data)
        response = asyncio.run(get_image_file(image_id=image.id, user=user, db=test_db))
        assert isinstance(response, FileResponse)
        assert str(response.path) == image.file_path

    def test_file_download_when_file_is_gone(self, test_db, user):
        image = make_image(test_db, user)
        with pytest.raises(HTTPException) as exc_info:
            asyncio.run(get_image_file(image_id=image.id, user=user, db=test_db))
        assert exc_info.value.status_code == 404


class TestEditImage:
    """Tests for PUT /api/v1/images/{id}/edit endpoint."""

    def test_replaces_original_and_regenerates_thumbnail(self, test_db, user, storage, sample_image_data):
        image = _stored_image(test_db, user, storage, sample_image_data)
        edited = PILImage.new("RGB", (200, 100), color="blue")
        buffer = io.BytesIO()
        edited.save(buffer, format="PNG")
        data_uri = "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")

        payload = asyncio.run(
            edit_image(
                image_id=image.id,
                body=EditImageRequest(imageData=data_uri),
                user=user,
                db=test_db,
                storage=storage,
                thumbnails=ThumbnailGenerator(width=50),
            )
        )

        with PILImage.open(payload["file_path"]) as original:
            assert original.format == "JPEG"
            assert original.size == (200, 100)
        with PILImage.open(payload["thumbnail_path"]) as thumb:
            assert thumb.size == (50, 25)

    def test_invalid_payload_is_bad_request(self, test_db, user, storage, sample_image_data):
        image = _stored_image(test_db, user, storage, sample_image_data)
        with pytest.raises(HTTPException) as exc_info:
            asyncio.run(
                edit_image(
                    image_id=image.id,
                    body=EditImageRequest(imageData="data:image/png;base64,bm90IGFuIGltYWdl"),
                    user=user,
                    db=test_db,
                    storage=storage,
                    thumbnails=ThumbnailGenerator(),
                )
            )
        assert exc_info.value.status_code == 400


class TestDeleteImage:
    """Tests for DELETE /api/v1/images/{id} and batch delete."""

    def test_delete_removes_files_and_row(self, test_db, user, storage, sample_image_data):
        image = _stored_image(test_db, user, storage, sample_image_data)
        add_user_tag(test_db, image, "gone")
        test_db.commit()
        image_id = image.id

        response = asyncio.run(delete_image(image_id=image_id, user=user, db=test_db, storage=storage))

        assert response == {"message": "Image deleted", "image_id": image_id}
        assert test_db.get(Image, image_id) is None
        assert list(storage.images_dir.iterdir()) == []
        assert list(storage.thumbnails_dir.iterdir()) == []
        assert test_db.execute(image_tags.select()).fetchall() == []

    def test_delete_with_missing_files_still_removes_row(self, test_db, user, storage, caplog):
        image = make_image(test_db, user)
        image_id = image.id

        asyncio.run(delete_image(image_id=image_id, user=user, db=test_db, storage=storage))

        assert test_db.get(Image, image_id) is None
        assert "already missing" in caplog.text

    def test_delete_other_users_image_is_not_found(self, test_db, user, other_user, storage):
        image = make_image(test_db, other_user)
        with pytest.raises(HTTPException) as exc_info:
            asyncio.run(delete_image(image_id=image.id, user=user, db=test_db, storage=storage))
        assert exc_info.value.status_code == 404
        assert test_db.get(Image, image.id) is not None

    def test_batch_delete_reports_not_found(self, test_db, user, other_user, storage):
        mine = [make_image(test_db, user) for _ in range(2)]
        theirs = make_image(test_db, other_user)

        response = asyncio.run(
            batch_delete_images(
                body=BatchDeleteRequest(image_ids=[mine[0].id, theirs.id, mine[1].id, 12345]),
                user=user,
                db=test_db,
                storage=storage,
            )
        )

        assert response == {"deleted": [mine[0].id, mine[1].id], "not_found": [theirs.id, 12345]}
        assert test_db.query(Image).filter(Image.user_id == user.id).count() == 0
        assert test_db.get(Image, theirs.id) is not None
