"""Exceptions raised by the card pipeline."""


class CardError(Exception):
    """Base class for structural card failures."""


class SurfaceError(CardError):
    """The drawing surface could not be acquired."""


class ExportError(CardError):
    """The finished surface could not be encoded."""
