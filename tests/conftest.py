"""Pytest configuration and fixtures."""

import io

import pytest
from PIL import Image

from models import Contact, ImageUpload


def _image_bytes(fmt: str) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), color=(200, 30, 30)).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return _image_bytes("PNG")


@pytest.fixture
def jpeg_bytes() -> bytes:
    return _image_bytes("JPEG")


@pytest.fixture
def png_upload(png_bytes: bytes) -> ImageUpload:
    return ImageUpload(data=png_bytes, media_type="image/png", name="contacts.png")


@pytest.fixture
def jane() -> Contact:
    return Contact(name="Jane Doe", company="", location="", email="", phone="")


@pytest.fixture
def tricky_contacts() -> list[Contact]:
    """Contacts whose fields need CSV quoting."""
    return [
        Contact(
            name="Jane Doe",
            company='Acme, "Inc."',
            location="1 Main St\nSpringfield",
            email="jane@acme.example",
            phone="+1 555 0100",
        ),
        Contact(name="", company="Solo", location="", email="", phone=""),
        Contact(name='O"Brien', company="", location="Dublin, IE", email="", phone=""),
    ]


@pytest.fixture
def mpo_bytes() -> bytes:
    """Two-frame multi-picture JPEG, as written by many phone cameras."""
    first = Image.new("RGB", (8, 8), color=(10, 120, 200))
    second = Image.new("RGB", (8, 8), color=(200, 120, 10))
    buffer = io.BytesIO()
    first.save(buffer, format="MPO", save_all=True, append_images=[second])
    return buffer.getvalue()
