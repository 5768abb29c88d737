"""Image processing utilities for opdscli using rich-pixels."""

import io
import logging

from PIL import Image as PILImage
from rich_pixels import Pixels

logger = logging.getLogger(name=__name__)


def decode_image(data: bytes) -> PILImage.Image:
    """Decode image data in memory.

    Args:
        data: Raw bytes of a PNG, JPEG, GIF, ...

    Returns:
        The decoded image, converted to RGB

    Raises:
        PIL.UnidentifiedImageError: If the data is not an image
    """
    with PILImage.open(io.BytesIO(data)) as img:
        img.load()
        return img.convert("RGB")


def render_image(image: PILImage.Image, max_width: int = 40, max_height: int = 20) -> Pixels:
    """Render an image for display in the terminal.

    Args:
        image: Decoded image
        max_width: Maximum display width
        max_height: Maximum display height

    Returns:
        A Rich Pixels object
    """
    img: PILImage.Image = image.copy()
    img.thumbnail((max_width, max_height))
    return Pixels.from_image(img)
