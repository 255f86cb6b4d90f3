"""Image processing: dimensions and WebP thumbnails."""

from io import BytesIO

from PIL import Image, ImageOps


def _open_upright(image_data: bytes) -> Image.Image:
    # Phone photos are often stored sideways with an EXIF orientation tag
    return ImageOps.exif_transpose(Image.open(BytesIO(image_data)))


def get_image_dimensions(image_data: bytes) -> tuple[int, int]:
    """Return (width, height) of an image as displayed."""
    return _open_upright(image_data).size


def generate_thumbnail(image_data: bytes, max_size: int) -> bytes:
    """Render a WebP thumbnail that fits in a max_size x max_size box."""
    thumb = _open_upright(image_data)
    thumb.thumbnail((max_size, max_size), Image.LANCZOS)

    # WebP encoder takes RGB/RGBA; palette and CMYK sources are flattened
    if thumb.mode not in ("RGB", "RGBA", "L"):
        thumb = thumb.convert("RGBA" if "transparency" in thumb.info else "RGB")

    buf = BytesIO()
    thumb.save(buf, "WEBP", quality=80)
    return buf.getvalue()
