"""Avatar resolution with a procedural placeholder fallback."""

from dataclasses import dataclass

import numpy as np
from PIL import Image, ImageDraw, ImageFilter

from .gradient import radial_gradient
from .palette import ACCENT, BG, BORDER, MUTED, PANEL

FALLBACK_SIZE = 400
FRAME_SHAPES = ("circle", "rounded_square")

# Corner radius of the rounded-square frame, as a fraction of its side
ROUNDED_RADIUS = 0.15


@dataclass
class ResolvedAvatar:
    """The avatar bitmap backing a render."""
    image: Image.Image
    synthesized: bool


def frame_mask(size, frame_shape="circle", inset=0):
    """Anti-aliased L-mode mask of the avatar frame.

    Args:
        size: Side length of the square mask.
        frame_shape: "circle" or "rounded_square".
        inset: Pixels to shrink the shape by on each side.
    """
    if frame_shape not in FRAME_SHAPES:
        raise ValueError(f"Unknown frame shape: {frame_shape!r}")

    mask = Image.new("L", (size, size), 0)
    draw = ImageDraw.Draw(mask)
    box = [inset, inset, size - 1 - inset, size - 1 - inset]
    if frame_shape == "circle":
        draw.ellipse(box, fill=255)
    else:
        draw.rounded_rectangle(box, radius=int(size * ROUNDED_RADIUS),
                               fill=255)

    # Minimal anti-alias blur (just 1px to soften staircase)
    return mask.filter(ImageFilter.GaussianBlur(radius=1))


def frame_outline(draw, size, frame_shape, inset, color, width):
    box = [inset, inset, size - 1 - inset, size - 1 - inset]
    if frame_shape == "circle":
        draw.ellipse(box, outline=color, width=width)
    else:
        radius = max(0, int(size * ROUNDED_RADIUS) - inset)
        draw.rounded_rectangle(box, radius=radius, outline=color,
                               width=width)


def _quad_bezier(p0, p1, p2, n=32):
    """Sample a quadratic Bezier curve into ``n`` points."""
    t = np.linspace(0.0, 1.0, n)[:, np.newaxis]
    pts = ((1 - t) ** 2) * p0 + 2 * (1 - t) * t * p1 + (t ** 2) * p2
    return [tuple(p) for p in pts]


def _silhouette(size):
    """Head and shoulders glyph as an L-mode mask."""
    mask = Image.new("L", (size, size), 0)
    draw = ImageDraw.Draw(mask)

    cx = size / 2
    head_r = size * 0.15
    head_y = size * 0.35
    draw.ellipse([cx - head_r, head_y - head_r, cx + head_r, head_y + head_r],
                 fill=255)

    shoulder_y = head_y + head_r
    shoulder_w = size * 0.4
    body_bottom = size * 0.75
    left = np.array([cx - shoulder_w / 2, shoulder_y + 10])
    right = np.array([cx + shoulder_w / 2, shoulder_y + 10])
    bottom = np.array([cx, body_bottom])

    outline = _quad_bezier(left,
                           np.array([cx - shoulder_w / 3, shoulder_y + 30]),
                           bottom)
    outline += _quad_bezier(bottom,
                            np.array([cx + shoulder_w / 3, shoulder_y + 30]),
                            right)[1:]
    draw.polygon(outline, fill=255)

    return mask.filter(ImageFilter.GaussianBlur(radius=1))


def create_fallback_avatar(frame_shape="circle", size=FALLBACK_SIZE):
    """Synthesise a placeholder avatar without any network access.

    Args:
        frame_shape: Shape the gradient is clipped to ("circle" or
            "rounded_square").
        size: Side length in pixels.

    Returns:
        PIL Image in RGBA mode, ``size`` x ``size``.
    """
    img = Image.new("RGBA", (size, size), BG + (255,))

    # 1. Radial gradient clipped to the frame
    gradient = radial_gradient(size, size, [
        (0.0, PANEL),
        (0.7, BG),
        (1.0, BORDER),
    ])
    img.paste(gradient, (0, 0), frame_mask(size, frame_shape))

    # 2. Accent ring inset from the edge
    ring = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    frame_outline(ImageDraw.Draw(ring), size, frame_shape, inset=10,
                   color=ACCENT + (128,), width=3)
    img.alpha_composite(ring)

    # 3. Muted silhouette at reduced opacity
    figure = Image.new("RGBA", (size, size), MUTED + (0,))
    alpha = np.array(_silhouette(size), dtype=np.float64) * 0.6
    figure.putalpha(Image.fromarray(alpha.astype(np.uint8)))
    img.alpha_composite(figure)

    return img


async def resolve_avatar(loader, username, timeout=15.0, frame_shape="circle",
                         endpoint=None):
    """Fetch a user's avatar, or synthesise one when it is unavailable.

    Args:
        loader: AssetLoader (or anything with a compatible ``load_avatar``).
        username: Sanitised handle.
        timeout: Seconds allowed for the lookup, which retries upstream.
        frame_shape: Frame shape used for a synthesised placeholder.
        endpoint: Optional avatar URL template with ``{username}``.

    Returns:
        ResolvedAvatar; never None.
    """
    image = await loader.load_avatar(username, timeout, endpoint=endpoint)
    if image is not None:
        return ResolvedAvatar(image=image, synthesized=False)
    return ResolvedAvatar(image=create_fallback_avatar(frame_shape),
                          synthesized=True)
