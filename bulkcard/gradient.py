"""Vectorised gradient fills built with numpy."""

import numpy as np
from PIL import Image


def _rgba(color):
    """Normalise an RGB or RGBA tuple to RGBA."""
    if len(color) == 3:
        return tuple(color) + (255,)
    return tuple(color)


def _interpolate(t, stops):
    """Map a parameter array ``t`` in [0, 1] through colour stops.

    Args:
        t: Array of any shape with values in [0, 1].
        stops: Sequence of (offset, color) pairs, offsets ascending.

    Returns:
        uint8 array of shape t.shape + (4,).
    """
    offsets = np.array([s[0] for s in stops], dtype=np.float64)
    colors = np.array([_rgba(s[1]) for s in stops], dtype=np.float64)

    out = np.empty(t.shape + (4,), dtype=np.float64)
    for c in range(4):
        out[..., c] = np.interp(t, offsets, colors[:, c])
    return np.clip(np.round(out), 0, 255).astype(np.uint8)


def radial_gradient(width, height, stops):
    """Radial gradient centred in the image, reaching t=1 at the
    half-extent of the shorter side.
    """
    cx = (width - 1) / 2.0
    cy = (height - 1) / 2.0
    radius = max(min(width, height) / 2.0, 1.0)

    ys, xs = np.mgrid[0:height, 0:width]
    dist = np.hypot(xs - cx, ys - cy) / radius
    t = np.clip(dist, 0, 1)

    return Image.fromarray(_interpolate(t, stops))


def linear_gradient(width, height, stops):
    """Linear gradient from the top-left to the bottom-right corner."""
    ys, xs = np.mgrid[0:height, 0:width].astype(np.float64)

    # Project each pixel onto the diagonal (0,0) -> (w, h)
    dx, dy = float(width), float(height)
    length_sq = max(dx * dx + dy * dy, 1.0)
    t = np.clip((xs * dx + ys * dy) / length_sq, 0, 1)

    return Image.fromarray(_interpolate(t, stops))
