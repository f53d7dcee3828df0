# tests/unit/services/test_storage.py
import io

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from agricoventas.core.config import Settings
from agricoventas.core.exceptions import UploadValidationError
from agricoventas.services.storage import DOCUMENT_TYPES, IMAGE_TYPES, MediaStorage


def make_upload(content: bytes, filename: str, content_type: str) -> UploadFile:
    return UploadFile(
        file=io.BytesIO(content),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


@pytest.fixture
def storage(tmp_path):
    settings = Settings(SECRET_KEY="test", MEDIA_ROOT=str(tmp_path), MAX_UPLOAD_SIZE=16)
    return MediaStorage(settings)


async def test_save_and_delete(storage, tmp_path):
    url = await storage.save(make_upload(b"png-bytes", "mi foto.png", "image/png"), "profiles", IMAGE_TYPES)

    assert url.startswith("/media/profiles/")
    assert url.endswith("mi_foto.png")
    path = storage.path_for_url(url)
    assert path.read_bytes() == b"png-bytes"

    assert storage.delete(url) is True
    assert not path.exists()


async def test_rejects_wrong_type(storage):
    with pytest.raises(UploadValidationError):
        await storage.save(make_upload(b"%PDF", "doc.pdf", "application/pdf"), "profiles", IMAGE_TYPES)


async def test_pdf_allowed_for_documents(storage):
    url = await storage.save(make_upload(b"%PDF-1.4", "ica.pdf", "application/pdf"), "certifications", DOCUMENT_TYPES)

    assert "/certifications/" in url


async def test_rejects_oversized_and_empty_files(storage):
    with pytest.raises(UploadValidationError) as exc_info:
        await storage.save(make_upload(b"x" * 17, "big.png", "image/png"), "products")
    assert exc_info.value.status_code == 400

    with pytest.raises(UploadValidationError):
        await storage.save(make_upload(b"", "empty.png", "image/png"), "products")


def test_urls_outside_media_root_are_ignored(storage):
    assert storage.path_for_url("https://example.com/other/file.png") is None
    assert storage.path_for_url("/media/../../etc/passwd") is None
    assert storage.delete(None) is False
