"""bulkcard - Render shareable 1200x630 profile cards."""

import asyncio

from .renderer import (CardConfig, CardData, CardStyle, CardSurface, compose,
                       render)
from .export import save_buffer, to_image_buffer

__version__ = "0.1.0"
__all__ = [
    "generate", "render", "compose", "CardConfig", "CardData", "CardStyle",
    "CardSurface", "to_image_buffer", "save_buffer",
]


def generate(username, display_name=None, background_path=None,
             card_background_path=None, tagline=None, style=None, **kwargs):
    """Render a card in one call.

    Args:
        username: Handle to show; a leading '@' is stripped.
        display_name: Optional headline shown above the handle.
        background_path: Mascot identifier (defaults to the first one).
        card_background_path: Optional scenic backdrop identifier.
        tagline: Tagline text; None uses the default phrase and an
            empty string omits the line.
        style: CardStyle instance (defaults used if None).
        **kwargs: Additional CardConfig parameters (assets_root,
            avatar_timeout, font_path, etc.).

    Returns:
        PIL Image in RGBA mode, 1200x630.
    """
    config = CardConfig(**kwargs)
    data = CardData(
        username=username,
        display_name=display_name,
        background_path=background_path,
        card_background_path=card_background_path,
        tagline=tagline,
    )
    surface = CardSurface()
    asyncio.run(render(surface, data, style=style, config=config))
    return surface.image
