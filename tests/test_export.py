"""Tests for PNG export."""

import io

import numpy as np
import pytest
from PIL import Image


def test_to_image_buffer_is_lossless_png():
    from bulkcard import CardData, CardSurface, compose, to_image_buffer
    from bulkcard.renderer import CardAssets
    surface = CardSurface()
    compose(surface, CardData(username="a"), CardAssets())

    data = to_image_buffer(surface)
    assert data[:8] == b"\x89PNG\r\n\x1a\n"

    decoded = Image.open(io.BytesIO(data))
    assert decoded.size == (1200, 630)
    np.testing.assert_array_equal(np.array(decoded.convert("RGBA")),
                                  np.array(surface.image))


def test_unrendered_surface_cannot_be_exported():
    from bulkcard import CardSurface, to_image_buffer
    from bulkcard.errors import ExportError
    with pytest.raises(ExportError):
        to_image_buffer(CardSurface())


def test_encode_failure_is_surfaced():
    from bulkcard import to_image_buffer
    from bulkcard.errors import ExportError

    class Broken:
        def save(self, fp, format=None):
            raise OSError("encoder exploded")

    with pytest.raises(ExportError):
        to_image_buffer(Broken())


def test_save_buffer_creates_directories(tmp_path):
    from bulkcard import save_buffer
    target = tmp_path / "out" / "nested" / "card.png"
    path = save_buffer(b"abc", target)
    assert path == target
    assert target.read_bytes() == b"abc"


def test_default_filename():
    from bulkcard.export import default_filename
    assert default_filename("elonmusk") == "bulk-card-elonmusk.png"
    assert default_filename("") == "bulk-card-user.png"
