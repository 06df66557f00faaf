"""Card compositing pipeline.

Resolves a CardData into a 1200x630 RGBA card. All artwork is acquired
concurrently first, then drawn in a single pass whose layer order never
depends on the input or on which asset arrived first.
"""

import asyncio
import logging
from dataclasses import dataclass

from PIL import Image, ImageChops, ImageDraw, ImageFilter, ImageOps

from .assets import AssetLoader
from .avatar import (FRAME_SHAPES, ResolvedAvatar, create_fallback_avatar,
                     frame_mask, frame_outline, resolve_avatar)
from .errors import SurfaceError
from .font import font_set
from .gradient import linear_gradient
from .layout import compute_layout
from .lookup import sanitize_username
from .palette import ACCENT, BG, CYAN, MAGENTA, MUTED, TEXT, WHITE, YELLOW

logger = logging.getLogger(__name__)

CARD_WIDTH = 1200
CARD_HEIGHT = 630

BACKGROUNDS = tuple(f"backgrounds/{i}.png" for i in range(1, 16))
CARD_BACKGROUNDS = (
    "card-backgrounds/1.jpg",
    "card-backgrounds/2.jpg",
    "card-backgrounds/3.jpg",
    "card-backgrounds/4.jpg",
    "card-backgrounds/5.jpg",
    "card-backgrounds/6.png",
    "card-backgrounds/7.jpg",
)
NO_BACKDROP = "none"

DEFAULT_TAGLINE = "hi bulkie!"

BADGE_STYLES = ("glow", "flat")
TEXT_LINE_MODES = ("handle_only", "name_and_handle")

# Geometry
PADDING = 60
AVATAR_SIZE = 320
AVATAR_X = PADDING
AVATAR_Y = (CARD_HEIGHT - AVATAR_SIZE) // 2
TEXT_GAP = 50
TEXT_START_X = AVATAR_X + AVATAR_SIZE + TEXT_GAP

BACKDROP_OPACITY = 0.3
MASCOT_HEIGHT = round(CARD_HEIGHT * 0.65)
RING_WIDTH = 4
RING_COLOR = WHITE + (51,)

BADGE_TOP = 50
BADGE_HEIGHT = 50
BADGE_RADIUS = 10
BADGE_PADDING = 16
BADGE_FONT_SIZE = 32

LOGO_HEIGHT = 50
LOGO_MARGIN = 50


def _normalize_asset_id(value):
    return value.strip().lstrip("/") if value else value


@dataclass(frozen=True)
class CardData:
    """Immutable description of one card.

    ``tagline=None`` selects DEFAULT_TAGLINE; an empty or blank string
    omits the tagline line entirely.
    """

    username: str
    display_name: str = None
    background_path: str = None
    card_background_path: str = None
    tagline: str = None

    def __post_init__(self):
        username = sanitize_username(self.username)
        if not username:
            raise ValueError("username must not be empty")
        object.__setattr__(self, "username", username)

        display = (self.display_name or "").strip() or None
        object.__setattr__(self, "display_name", display)

        background = _normalize_asset_id(self.background_path) or BACKGROUNDS[0]
        if background not in BACKGROUNDS:
            raise ValueError(f"Unknown background: {self.background_path!r}")
        object.__setattr__(self, "background_path", background)

        backdrop = _normalize_asset_id(self.card_background_path) or None
        if backdrop is not None and backdrop.lower() == NO_BACKDROP:
            backdrop = None
        if backdrop is not None and backdrop not in CARD_BACKGROUNDS:
            raise ValueError(
                f"Unknown card background: {self.card_background_path!r}")
        object.__setattr__(self, "card_background_path", backdrop)

        if self.tagline is not None:
            object.__setattr__(self, "tagline", self.tagline.strip())

    @property
    def tagline_text(self):
        """The tagline to draw, or None when it is omitted."""
        if self.tagline is None:
            return DEFAULT_TAGLINE
        return self.tagline or None


@dataclass(frozen=True)
class CardStyle:
    """Visual variant of the card."""

    frame_shape: str = "circle"
    badge_style: str = "glow"
    text_lines: str = "name_and_handle"

    def __post_init__(self):
        if self.frame_shape not in FRAME_SHAPES:
            raise ValueError(f"Unknown frame shape: {self.frame_shape!r}")
        if self.badge_style not in BADGE_STYLES:
            raise ValueError(f"Unknown badge style: {self.badge_style!r}")
        if self.text_lines not in TEXT_LINE_MODES:
            raise ValueError(f"Unknown text lines mode: {self.text_lines!r}")


@dataclass
class CardConfig:
    """Configuration for asset lookup and rendering."""

    # Asset locations
    assets_root: str = None
    logo_path: str = "logo.png"

    # Fonts (discovered automatically when None)
    font_path: str = None
    bold_font_path: str = None

    # Per-asset timeouts in seconds
    asset_timeout: float = 3.0
    logo_timeout: float = 5.0
    avatar_timeout: float = 15.0

    # URL template with {username}; None uses the built-in lookup chain
    avatar_endpoint: str = None

    badge_text: str = "ACCESS GRANTED"

    def __post_init__(self):
        if self.avatar_endpoint:
            try:
                self.avatar_endpoint.format(username="user")
            except (KeyError, IndexError, ValueError) as exc:
                raise ValueError(
                    f"Bad avatar endpoint template "
                    f"{self.avatar_endpoint!r}: only {{username}} is "
                    f"supported") from exc


@dataclass
class CardAssets:
    """Artwork resolved for one render. Absent decorative assets are None."""
    avatar: ResolvedAvatar = None
    backdrop: Image.Image = None
    mascot: Image.Image = None
    logo: Image.Image = None


@dataclass
class RenderResult:
    assets: CardAssets
    layout: object


class CardSurface:
    """The fixed-size drawing surface owned by a single render."""

    size = (CARD_WIDTH, CARD_HEIGHT)

    def __init__(self):
        self.image = None

    def acquire(self):
        """(Re)create a blank surface, discarding any previous drawing."""
        try:
            self.image = Image.new("RGBA", self.size, (0, 0, 0, 0))
        except (ValueError, MemoryError, OSError) as exc:
            raise SurfaceError(f"Cannot allocate card surface: {exc}") from exc
        return self.image


async def _absent():
    return None


async def gather_assets(loader, data, style, config):
    """Acquire every independent asset concurrently.

    Returns once each load has either succeeded or resolved to absence.
    """
    if data.card_background_path:
        backdrop = loader.load_image(data.card_background_path,
                                     config.asset_timeout)
    else:
        backdrop = _absent()
    if config.logo_path:
        logo = loader.load_image(config.logo_path, config.logo_timeout)
    else:
        logo = _absent()

    backdrop, mascot, avatar, logo = await asyncio.gather(
        backdrop,
        loader.load_image(data.background_path, config.asset_timeout),
        resolve_avatar(loader, data.username, config.avatar_timeout,
                       frame_shape=style.frame_shape,
                       endpoint=config.avatar_endpoint),
        logo,
    )
    return CardAssets(avatar=avatar, backdrop=backdrop, mascot=mascot,
                      logo=logo)


async def render(surface, data, style=None, config=None, loader=None):
    """Render a card onto ``surface``.

    Args:
        surface: CardSurface to draw on; it is reset first.
        data: CardData describing the card.
        style: CardStyle (defaults used if None).
        config: CardConfig (defaults used if None).
        loader: Optional AssetLoader; one is created and closed here
            when omitted.

    Returns:
        RenderResult with the resolved assets and text layout.

    Raises:
        SurfaceError: The drawing surface could not be acquired.
    """
    if style is None:
        style = CardStyle()
    if config is None:
        config = CardConfig()

    surface.acquire()

    if loader is None:
        async with AssetLoader(config.assets_root) as owned:
            assets = await gather_assets(owned, data, style, config)
    else:
        assets = await gather_assets(loader, data, style, config)

    layout = compose(surface, data, assets, style, config)
    return RenderResult(assets=assets, layout=layout)


def compose(surface, data, assets, style=None, config=None, fonts=None):
    """Draw every layer of the card in the fixed back-to-front order.

    Synchronous and deterministic: identical inputs and assets always
    produce identical pixels.

    Returns:
        LayoutResult of the text column.
    """
    if style is None:
        style = CardStyle()
    if config is None:
        config = CardConfig()
    if fonts is None:
        fonts = font_set(config.font_path, config.bold_font_path)

    canvas = surface.acquire()

    avatar = assets.avatar
    if avatar is None:
        avatar = ResolvedAvatar(create_fallback_avatar(style.frame_shape),
                                synthesized=True)

    # --- Layers ---

    # 1. Base fill
    canvas.paste(BG + (255,), (0, 0, CARD_WIDTH, CARD_HEIGHT))

    # 2. Scenic backdrop
    if assets.backdrop is not None:
        _draw_backdrop(canvas, assets.backdrop)
    elif data.card_background_path:
        logger.debug("Skipping missing backdrop %s",
                     data.card_background_path)

    # 3. Mascot art (its left edge bounds the text column)
    text_area_right = CARD_WIDTH
    if assets.mascot is not None:
        text_area_right = _draw_mascot(canvas, assets.mascot)
    else:
        logger.debug("Skipping missing mascot %s", data.background_path)

    # 4. Avatar
    _draw_avatar(canvas, avatar.image, style.frame_shape)

    # 5. Text stack, centred on the avatar
    layout = compute_layout(data, style, fonts, TEXT_START_X,
                            text_area_right,
                            AVATAR_Y + AVATAR_SIZE / 2)
    _draw_text(canvas, layout, fonts)

    # 6. Status badge
    _draw_badge(canvas, config.badge_text, style.badge_style,
                fonts["black"].font(BADGE_FONT_SIZE))

    # 7. Logo
    if assets.logo is not None:
        _draw_logo(canvas, assets.logo)

    return layout


# ---------------------------------------------------------------------------
# Layer stages
# ---------------------------------------------------------------------------

def _composite_clipped(canvas, img, x, y):
    """alpha_composite that tolerates a negative destination."""
    x, y = int(x), int(y)
    src_x, src_y = max(0, -x), max(0, -y)
    if src_x >= img.width or src_y >= img.height:
        return
    canvas.alpha_composite(img, dest=(max(0, x), max(0, y)),
                           source=(src_x, src_y))


def _with_opacity(img, opacity):
    img = img.copy()
    alpha = img.getchannel("A").point(lambda v: round(v * opacity))
    img.putalpha(alpha)
    return img


def _scale_to_height(img, height):
    width = max(1, round(img.width * height / img.height))
    return img.convert("RGBA").resize((width, height), Image.LANCZOS)


def _draw_backdrop(canvas, backdrop):
    """Cover the card with the backdrop (centred crop) at low opacity."""
    fitted = ImageOps.fit(backdrop.convert("RGBA"), (CARD_WIDTH, CARD_HEIGHT),
                          method=Image.LANCZOS, centering=(0.5, 0.5))
    canvas.alpha_composite(_with_opacity(fitted, BACKDROP_OPACITY))


def _draw_mascot(canvas, mascot):
    """Anchor the mascot bottom-right; returns its left edge."""
    scaled = _scale_to_height(mascot, MASCOT_HEIGHT)
    x = CARD_WIDTH - scaled.width
    y = CARD_HEIGHT - scaled.height
    _composite_clipped(canvas, scaled, x, y)
    return x


def _draw_avatar(canvas, avatar, frame_shape):
    fitted = ImageOps.fit(avatar.convert("RGBA"), (AVATAR_SIZE, AVATAR_SIZE),
                          method=Image.LANCZOS)
    clip = frame_mask(AVATAR_SIZE, frame_shape)
    fitted.putalpha(ImageChops.multiply(fitted.getchannel("A"), clip))
    canvas.alpha_composite(fitted, dest=(AVATAR_X, AVATAR_Y))

    # Subtle ring straddling the frame edge
    pad = RING_WIDTH // 2
    ring_size = AVATAR_SIZE + 2 * pad
    ring = Image.new("RGBA", (ring_size, ring_size), (0, 0, 0, 0))
    frame_outline(ImageDraw.Draw(ring), ring_size, frame_shape, inset=0,
                  color=RING_COLOR, width=RING_WIDTH)
    canvas.alpha_composite(ring, dest=(AVATAR_X - pad, AVATAR_Y - pad))


def _draw_text(canvas, layout, fonts):
    draw = ImageDraw.Draw(canvas)
    for line in layout.lines:
        color = MUTED if line.role == "handle" else TEXT
        draw.text((layout.text_start_x, line.y), line.text,
                  font=fonts[line.weight].font(line.size),
                  fill=color + (255,), anchor="lm")


def _glow(canvas, paint, blur):
    """Composite a blurred copy of an RGBA layer (canvas shadowBlur)."""
    canvas.alpha_composite(paint.filter(ImageFilter.GaussianBlur(blur / 2)))


def _draw_badge(canvas, caption, badge_style, font):
    """Pill-shaped status badge pinned at a fixed point of the card."""
    text_w = font.getlength(caption)
    badge_w = round(text_w + BADGE_PADDING * 2)
    x0, y0 = TEXT_START_X, BADGE_TOP
    x1, y1 = x0 + badge_w - 1, y0 + BADGE_HEIGHT - 1
    text_pos = (x0 + BADGE_PADDING, y0 + BADGE_HEIGHT / 2)

    shape = Image.new("L", (badge_w, BADGE_HEIGHT), 0)
    ImageDraw.Draw(shape).rounded_rectangle(
        [0, 0, badge_w - 1, BADGE_HEIGHT - 1], radius=BADGE_RADIUS, fill=255)

    def layer(color=WHITE):
        # Transparent pixels carry the paint colour so blurs do not darken
        return Image.new("RGBA", canvas.size, color + (0,))

    if badge_style == "flat":
        fill = Image.new("RGBA", (badge_w, BADGE_HEIGHT), ACCENT + (48,))
        fill.putalpha(ImageChops.multiply(fill.getchannel("A"), shape))
        canvas.alpha_composite(fill, dest=(x0, y0))

        border = layer()
        ImageDraw.Draw(border).rounded_rectangle(
            [x0, y0, x1, y1], radius=BADGE_RADIUS, outline=ACCENT + (255,),
            width=2)
        canvas.alpha_composite(border)

        ImageDraw.Draw(canvas).text(text_pos, caption, font=font,
                                    fill=WHITE + (255,), anchor="lm")
        return

    # Holographic ribbon fill
    holo = linear_gradient(badge_w, BADGE_HEIGHT, [
        (0.0, WHITE + (26,)),
        (0.2, CYAN + (102,)),
        (0.4, MAGENTA + (102,)),
        (0.6, YELLOW + (102,)),
        (0.8, CYAN + (102,)),
        (1.0, WHITE + (26,)),
    ])
    holo.putalpha(ImageChops.multiply(holo.getchannel("A"), shape))
    canvas.alpha_composite(holo, dest=(x0, y0))

    # Border with cyan bloom
    bloom = layer(CYAN)
    ImageDraw.Draw(bloom).rounded_rectangle(
        [x0, y0, x1, y1], radius=BADGE_RADIUS, outline=CYAN + (255,),
        width=2)
    _glow(canvas, bloom, 15)
    border = layer()
    ImageDraw.Draw(border).rounded_rectangle(
        [x0, y0, x1, y1], radius=BADGE_RADIUS, outline=WHITE + (153,),
        width=2)
    canvas.alpha_composite(border)

    # Caption with a wide and a tight accent glow
    halo = layer(ACCENT)
    ImageDraw.Draw(halo).text(text_pos, caption, font=font,
                              fill=ACCENT + (255,), anchor="lm")
    _glow(canvas, halo, 30)
    _glow(canvas, halo, 10)
    ImageDraw.Draw(canvas).text(text_pos, caption, font=font,
                                fill=WHITE + (255,), anchor="lm")


def _draw_logo(canvas, logo):
    scaled = _scale_to_height(logo, LOGO_HEIGHT)
    _composite_clipped(canvas, scaled, CARD_WIDTH - scaled.width - LOGO_MARGIN,
                       LOGO_MARGIN)
