"""
FridgeMind API — Meal Photo Storage Tests
===========================================

What:  Upload/delete semantics of StorageService on a temp directory and the
       path-traversal guard of the serving route.
"""

import base64
import uuid
from pathlib import Path
from unittest.mock import patch

import pytest

from fridgemind.exceptions import NotFoundError, ValidationError
from fridgemind.services.storage_service import StorageService


@pytest.fixture
def storage(tmp_path) -> StorageService:
    return StorageService(storage_root=str(tmp_path), public_base_url="http://cdn.test/")


def _key(url: str) -> str:
    return url.split("/meal-photos/", 1)[1]


class TestUpload:

    @pytest.mark.asyncio
    async def test_writes_blob_and_returns_public_url(self, storage, sample_image_b64):
        user_id = uuid.uuid4()

        url = await storage.upload_meal_photo(sample_image_b64, user_id)

        assert url.startswith(f"http://cdn.test/storage/meal-photos/{user_id}/")
        assert url.endswith(".jpg")
        stamp, suffix = Path(_key(url)).stem.split("-")
        assert stamp.isdigit()
        assert len(suffix) == 6
        assert storage.resolve_blob_path(_key(url)).read_bytes() == base64.b64decode(sample_image_b64)

    @pytest.mark.asyncio
    async def test_data_url_prefix_is_stripped(self, storage, sample_image_b64):
        url = await storage.upload_meal_photo("data:image/jpeg;base64," + sample_image_b64, uuid.uuid4())

        assert storage.resolve_blob_path(_key(url)).read_bytes()[:2] == b"\xff\xd8"

    @pytest.mark.asyncio
    async def test_bad_base64_returns_none(self, storage):
        assert await storage.upload_meal_photo("not base64 at all!!", uuid.uuid4()) is None

    @pytest.mark.asyncio
    async def test_io_failure_returns_none(self, storage, sample_image_b64):
        with patch("fridgemind.services.storage_service.aiofiles.open", side_effect=OSError("read-only")):
            assert await storage.upload_meal_photo(sample_image_b64, uuid.uuid4()) is None


class TestDelete:

    @pytest.mark.asyncio
    async def test_owner_can_delete(self, storage, sample_image_b64):
        user_id = uuid.uuid4()
        url = await storage.upload_meal_photo(sample_image_b64, user_id)

        assert await storage.delete_meal_photo(url, user_id) is True
        with pytest.raises(NotFoundError):
            storage.resolve_blob_path(_key(url))

    @pytest.mark.asyncio
    async def test_other_user_is_refused(self, storage, sample_image_b64):
        owner = uuid.uuid4()
        url = await storage.upload_meal_photo(sample_image_b64, owner)

        assert await storage.delete_meal_photo(url, uuid.uuid4()) is False
        assert storage.resolve_blob_path(_key(url)).exists()

    @pytest.mark.asyncio
    async def test_foreign_url_is_refused(self, storage):
        assert await storage.delete_meal_photo("https://example.com/cat.jpg", uuid.uuid4()) is False

    @pytest.mark.asyncio
    async def test_missing_blob_returns_false(self, storage):
        user_id = uuid.uuid4()
        url = f"http://cdn.test/storage/meal-photos/{user_id}/1-abcdef.jpg"

        assert await storage.delete_meal_photo(url, user_id) is False


class TestResolveBlobPath:

    def test_traversal_is_rejected(self, storage):
        with pytest.raises(ValidationError):
            storage.resolve_blob_path("../../etc/passwd")


class TestStorageRoute:

    @pytest.mark.asyncio
    async def test_serves_uploaded_photo(self, api_client, storage, sample_image_b64):
        url = await storage.upload_meal_photo(sample_image_b64, uuid.uuid4())

        with patch("fridgemind.routes.storage.storage_service", storage):
            response = await api_client.get(f"/storage/meal-photos/{_key(url)}")

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/jpeg"
        assert response.content == base64.b64decode(sample_image_b64)

    @pytest.mark.asyncio
    async def test_unknown_photo_is_404(self, api_client, storage):
        with patch("fridgemind.routes.storage.storage_service", storage):
            response = await api_client.get(f"/storage/meal-photos/{uuid.uuid4()}/nope.jpg")

        assert response.status_code == 404
