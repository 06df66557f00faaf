"""Bounded, non-raising image acquisition.

Every load either yields a decoded RGBA image or None. Failures of any
kind (missing file, HTTP error, undecodable bytes, timeout) are logged at
DEBUG and reported as absence. Cancellation is never swallowed.
"""

import asyncio
import io
import logging
from pathlib import Path
from urllib.parse import quote

import aiohttp
from PIL import Image

from .lookup import UNAVATAR_URL, fetch_avatar

logger = logging.getLogger(__name__)

DEFAULT_ASSETS_ROOT = Path(__file__).parent / "assets"


def decode_image(data):
    """Decode raw image bytes into an RGBA image."""
    img = Image.open(io.BytesIO(data))
    img.load()
    return img.convert("RGBA")


def _read_image(path):
    with open(path, "rb") as f:
        return decode_image(f.read())


def is_remote(url):
    return url.startswith(("http://", "https://"))


class AssetLoader:
    """Loads card artwork from disk or over HTTP.

    Usable as an async context manager; a session created by the loader
    is closed on exit, a session passed in is left open.
    """

    def __init__(self, assets_root=None, session=None,
                 avatar_service=UNAVATAR_URL):
        self.assets_root = Path(assets_root or DEFAULT_ASSETS_ROOT)
        self.avatar_service = avatar_service
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def close(self):
        if self._owns_session and self._session is not None:
            if not self._session.closed:
                await self._session.close()
            self._session = None

    def _get_session(self):
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    def resolve_path(self, url):
        """Map an asset identifier like ``/backgrounds/1.png`` to a file."""
        return self.assets_root / url.lstrip("/")

    async def load_image(self, url, timeout):
        """Load an image by URL or asset identifier.

        Args:
            url: ``http(s)://`` URL, or a path relative to assets_root.
            timeout: Seconds allowed for fetch and decode together.

        Returns:
            RGBA PIL Image, or None.
        """
        return await self._bounded(self._fetch(url), timeout, url)

    async def load_avatar(self, username, timeout, endpoint=None):
        """Load a user's avatar through the avatar lookup service.

        When ``endpoint`` is given it is used as a URL template with a
        ``{username}`` placeholder instead of the built-in lookup chain.
        """
        if endpoint:
            try:
                url = endpoint.format(username=quote(username, safe=""))
            except (KeyError, IndexError, ValueError) as exc:
                logger.debug("Bad avatar endpoint %r: %s", endpoint, exc)
                return None
            return await self.load_image(url, timeout)
        return await self._bounded(self._fetch_avatar(username), timeout,
                                   f"avatar for {username}")

    async def _bounded(self, coro, timeout, label):
        try:
            return await asyncio.wait_for(coro, timeout)
        except asyncio.TimeoutError:
            logger.debug("Timed out after %.1fs loading %s", timeout, label)
        except Exception as exc:
            logger.debug("Could not load %s: %s", label, exc)
        return None

    async def _fetch(self, url):
        loop = asyncio.get_running_loop()

        if not is_remote(url):
            path = self.resolve_path(url)
            return await loop.run_in_executor(None, _read_image, path)

        session = self._get_session()
        async with session.get(url) as resp:
            if resp.status != 200:
                logger.debug("GET %s -> %s", url, resp.status)
                return None
            data = await resp.read()
        return await loop.run_in_executor(None, decode_image, data)

    async def _fetch_avatar(self, username):
        result = await fetch_avatar(self._get_session(), username,
                                    base_url=self.avatar_service)
        if result is None:
            return None
        data, _content_type = result
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, decode_image, data)


async def load_image(url, timeout, assets_root=None):
    """One-off load with a throwaway AssetLoader."""
    async with AssetLoader(assets_root) as loader:
        return await loader.load_image(url, timeout)
