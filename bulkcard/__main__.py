"""CLI entry point for bulkcard."""

import argparse
import asyncio
import logging
import os

import aiohttp

from .export import default_filename, save_buffer, to_image_buffer
from .lookup import fetch_display_name, sanitize_username
from .renderer import (BACKGROUNDS, CARD_BACKGROUNDS, CardConfig, CardData,
                       CardStyle, CardSurface, render)


def build_parser():
    parser = argparse.ArgumentParser(
        prog="bulkcard",
        description="Render a shareable 1200x630 profile card"
    )
    parser.add_argument("username", help="Handle to put on the card")
    parser.add_argument(
        "--display-name", "-n", default=None,
        help="Display name shown as the headline"
    )
    parser.add_argument(
        "--lookup-name", action="store_true",
        help="Look up the display name online when --display-name is unset"
    )
    parser.add_argument(
        "--background", "-b", default=BACKGROUNDS[0],
        help=f"Mascot art identifier (default: {BACKGROUNDS[0]})"
    )
    parser.add_argument(
        "--card-background", "-c", default=None,
        help="Scenic backdrop identifier, or 'none' (default: none). "
             f"Choices: {', '.join(CARD_BACKGROUNDS)}"
    )
    parser.add_argument(
        "--tagline", "-t", default=None,
        help="Tagline text; pass an empty string to omit it"
    )
    parser.add_argument(
        "--frame", choices=("circle", "rounded_square"), default="circle",
        help="Avatar frame shape (default: circle)"
    )
    parser.add_argument(
        "--badge", choices=("glow", "flat"), default="glow",
        help="Status badge style (default: glow)"
    )
    parser.add_argument(
        "--text-lines", choices=("handle_only", "name_and_handle"),
        default="name_and_handle",
        help="Text composition (default: name_and_handle)"
    )
    parser.add_argument(
        "--assets", default=os.environ.get("BULKCARD_ASSETS"),
        help="Directory holding backgrounds/, card-backgrounds/ and "
             "logo.png (default: $BULKCARD_ASSETS or the bundled set)"
    )
    parser.add_argument("--font", default=None, help="Regular font file")
    parser.add_argument(
        "--bold-font", default=None, help="Font file for bold text"
    )
    parser.add_argument(
        "--avatar-endpoint", default=None,
        help="Avatar URL template containing {username}"
    )
    parser.add_argument(
        "--avatar-timeout", type=float, default=None,
        help="Seconds to wait for the avatar (default: 15)"
    )
    parser.add_argument(
        "--output", "-o", default=None,
        help="Output file path (default: bulk-card-<username>.png)"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Log progress"
    )
    return parser


async def _lookup_name(username):
    async with aiohttp.ClientSession() as session:
        return await fetch_display_name(session, username)


async def _render(args, style, config):
    display_name = args.display_name
    if display_name is None and args.lookup_name:
        display_name = await _lookup_name(sanitize_username(args.username))
        logging.getLogger(__name__).info("Display name: %r", display_name)

    data = CardData(
        username=args.username,
        display_name=display_name,
        background_path=args.background,
        card_background_path=args.card_background,
        tagline=args.tagline,
    )
    surface = CardSurface()
    await render(surface, data, style=style, config=config)
    return data, surface


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    kwargs = {}
    if args.assets:
        kwargs["assets_root"] = args.assets
    if args.font:
        kwargs["font_path"] = args.font
    if args.bold_font:
        kwargs["bold_font_path"] = args.bold_font
    if args.avatar_endpoint:
        kwargs["avatar_endpoint"] = args.avatar_endpoint
    if args.avatar_timeout is not None:
        kwargs["avatar_timeout"] = args.avatar_timeout

    try:
        style = CardStyle(frame_shape=args.frame, badge_style=args.badge,
                          text_lines=args.text_lines)
        config = CardConfig(**kwargs)
        data, surface = asyncio.run(_render(args, style, config))
    except ValueError as exc:
        parser.error(str(exc))

    output = save_buffer(
        to_image_buffer(surface),
        args.output or default_filename(data.username),
    )
    w, h = surface.image.size
    print(f"Saved card ({w}x{h}) to {output}")


if __name__ == "__main__":
    main()
