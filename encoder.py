# encoder.py
import base64
import binascii
import io
import logging
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from models import ImageUpload

logger = logging.getLogger(__name__)

# multi-picture camera JPEGs are plain JPEG bytes
_MEDIA_TYPE_ALIASES = {"MPO": "image/jpeg"}


class ImageReadError(Exception):
    """The image could not be read or identified."""


def encode_image(data: bytes) -> str:
    # plain base64: no line breaks, no data: prefix
    return base64.b64encode(data).decode("ascii")


def decode_image(text: str) -> bytes:
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageReadError(f"invalid base64 payload: {e}") from e


def _format_from_header(data: bytes) -> str | None:
    # same prefix checks Image.open runs, without the pixel-count limit
    prefix = data[:16]
    Image.init()
    for fmt in Image.ID:
        _, accept = Image.OPEN[fmt]
        if accept is not None and accept(prefix):
            return fmt
    return None


def detect_media_type(data: bytes) -> str:
    """Sniff the image format from its bytes, e.g. ``image/png``."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format
    except Image.DecompressionBombError:
        # only the format is needed; size limits are left to the model endpoint
        fmt = _format_from_header(data)
    except (UnidentifiedImageError, OSError) as e:
        raise ImageReadError("unrecognized image data") from e
    media_type = _MEDIA_TYPE_ALIASES.get(fmt or "") or Image.MIME.get(fmt or "")
    if not media_type:
        raise ImageReadError(f"no media type known for format {fmt!r}")
    return media_type


def load_image(path: str | Path) -> ImageUpload:
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise ImageReadError(f"cannot read {path}: {e}") from e
    media_type = detect_media_type(data)
    logger.debug("Loaded %s (%d bytes, %s)", path.name, len(data), media_type)
    return ImageUpload(data=data, media_type=media_type, name=path.name)


def read_upload(data: bytes, media_type: str | None = None, name: str = "image") -> ImageUpload:
    # browsers sometimes send an empty or generic type
    if not media_type or not media_type.startswith("image/"):
        media_type = detect_media_type(data)
    return ImageUpload(data=data, media_type=media_type, name=name)
