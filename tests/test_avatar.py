"""Tests for avatar resolution and the procedural placeholder."""

import asyncio

import numpy as np
import pytest
from PIL import Image


@pytest.mark.parametrize("shape", ["circle", "rounded_square"])
def test_fallback_avatar_shape_and_mode(shape):
    from bulkcard.avatar import create_fallback_avatar
    img = create_fallback_avatar(shape)
    assert img.mode == "RGBA"
    assert img.size == (400, 400)


def test_fallback_avatar_is_deterministic():
    from bulkcard.avatar import create_fallback_avatar
    arr1 = np.array(create_fallback_avatar("circle"))
    arr2 = np.array(create_fallback_avatar("circle"))
    np.testing.assert_array_equal(arr1, arr2)


def test_fallback_avatar_draws_silhouette():
    from bulkcard.avatar import create_fallback_avatar
    from bulkcard.palette import BG
    arr = np.array(create_fallback_avatar()).astype(int)

    # Head centre is lighter than the base tone
    head = arr[140, 200, :3]
    assert head.sum() > sum(BG) + 60
    # Corner outside the frame stays the flat base tone
    assert tuple(arr[0, 0, :3]) == BG


def test_frame_shapes_differ_at_the_corners():
    from bulkcard.avatar import frame_mask
    circle = np.array(frame_mask(320, "circle"))
    square = np.array(frame_mask(320, "rounded_square"))
    assert circle[30, 30] == 0
    assert square[30, 30] == 255
    assert circle[160, 160] == square[160, 160] == 255


def test_frame_mask_rejects_unknown_shape():
    from bulkcard.avatar import frame_mask
    with pytest.raises(ValueError):
        frame_mask(100, "hexagon")


def test_resolve_avatar_uses_loaded_image(fake_loader):
    from bulkcard.avatar import resolve_avatar
    real = Image.new("RGBA", (64, 64), (1, 2, 3, 255))
    loader = fake_loader(avatar=real)

    resolved = asyncio.run(resolve_avatar(loader, "elonmusk"))
    assert resolved.synthesized is False
    assert resolved.image is real
    assert loader.requested == ["avatar:elonmusk"]


def test_resolve_avatar_falls_back_when_absent(fake_loader):
    from bulkcard.avatar import resolve_avatar
    resolved = asyncio.run(resolve_avatar(fake_loader(avatar=None), "ghost"))
    assert resolved.synthesized is True
    assert resolved.image.size == (400, 400)
