"""PNG export of a finished card."""

import io
from pathlib import Path

from .errors import ExportError


def default_filename(username):
    return f"bulk-card-{username or 'user'}.png"


def to_image_buffer(surface):
    """Encode the surface losslessly as PNG.

    Args:
        surface: CardSurface that has been rendered, or a PIL Image.

    Returns:
        PNG file contents as bytes.

    Raises:
        ExportError: Nothing has been drawn or encoding failed.
    """
    image = getattr(surface, "image", surface)
    if image is None:
        raise ExportError("Surface has not been rendered")

    buf = io.BytesIO()
    try:
        image.save(buf, format="PNG")
    except (OSError, ValueError) as exc:
        raise ExportError(f"Failed to encode card: {exc}") from exc
    return buf.getvalue()


def save_buffer(buffer, filename):
    """Write an encoded card to ``filename`` and return its Path."""
    path = Path(filename)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(buffer)
    return path
