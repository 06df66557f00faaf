"""Text fitting and vertical stacking for the card's text column.

The layout is recomputed on every render because the chosen font sizes
depend on the live font metrics.
"""

from dataclasses import dataclass, field


# (initial size, floor size, step, weight) per adaptive line role
HEADLINE = (85, 40, 4, "bold")
TAGLINE = (56, 20, 2, "semibold")
# Secondary handle line is never resized
HANDLE_SIZE = 40
HANDLE_WEIGHT = "semibold"

LINE_GAP = 24
TEXT_MARGIN = 40


@dataclass
class PlacedLine:
    """A single text line with its resolved size and centre-line y."""
    role: str
    text: str
    size: int
    y: float
    weight: str


@dataclass
class LayoutResult:
    """Resolved geometry of the text column for one render."""
    text_start_x: int
    text_area_right: float
    max_text_width: float
    lines: list = field(default_factory=list)


def fit_text(text, initial_size, floor_size, step, max_width, font_spec):
    """Find the largest font size at which ``text`` fits ``max_width``.

    Starts at ``initial_size`` and shrinks by ``step`` while the measured
    width exceeds ``max_width``. Stops at ``floor_size`` even if the text
    still overflows; no truncation is applied.

    Args:
        text: String to measure.
        initial_size: Starting (maximum) font size in pixels.
        floor_size: Smallest permitted font size.
        step: Decrement applied per iteration.
        max_width: Available horizontal space in pixels.
        font_spec: Object exposing ``measure(text, size)``.

    Returns:
        The chosen font size, in ``[floor_size, initial_size]``.
    """
    if step <= 0:
        raise ValueError("step must be positive")
    if floor_size > initial_size:
        raise ValueError("floor_size must not exceed initial_size")

    size = initial_size
    while font_spec.measure(text, size) > max_width and size > floor_size:
        size = max(size - step, floor_size)
    return size


def stack_lines(sizes, gap, anchor_y):
    """Centre-line y of each line so the block is centred on ``anchor_y``.

    Lines are laid out top to bottom in the given order, each occupying
    its font size in height, separated by ``gap`` pixels.
    """
    if not sizes:
        return []

    block_h = sum(sizes) + gap * (len(sizes) - 1)
    y = anchor_y - block_h / 2
    centres = []
    for size in sizes:
        centres.append(y + size / 2)
        y += size + gap
    return centres


def text_lines(data, style):
    """Return ``(role, text)`` pairs in reading order."""
    handle = f"@{data.username}"
    if style.text_lines == "name_and_handle" and data.display_name:
        lines = [("headline", data.display_name), ("handle", handle)]
    else:
        lines = [("headline", handle)]

    tagline = data.tagline_text
    if tagline:
        lines.append(("tagline", tagline))
    return lines


def compute_layout(data, style, fonts, text_start_x, text_area_right,
                   anchor_y):
    """Size and position every text line of the card.

    Args:
        data: CardData being rendered.
        style: CardStyle selecting the text-line composition.
        fonts: Mapping of weight name to FontSpec.
        text_start_x: Left edge of the text column.
        text_area_right: Right bound imposed by the mascot art.
        anchor_y: Vertical centre the text block is aligned to.

    Returns:
        LayoutResult with lines in reading order.
    """
    max_width = text_area_right - text_start_x - TEXT_MARGIN

    sized = []
    for role, text in text_lines(data, style):
        if role == "handle":
            size, weight = HANDLE_SIZE, HANDLE_WEIGHT
        else:
            initial, floor, step, weight = (
                HEADLINE if role == "headline" else TAGLINE)
            size = fit_text(text, initial, floor, step, max_width,
                            fonts[weight])
        sized.append((role, text, size, weight))

    centres = stack_lines([s[2] for s in sized], LINE_GAP, anchor_y)

    result = LayoutResult(text_start_x=text_start_x,
                          text_area_right=text_area_right,
                          max_text_width=max_width)
    for (role, text, size, weight), y in zip(sized, centres):
        result.lines.append(PlacedLine(role, text, size, y, weight))
    return result
