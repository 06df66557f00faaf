"""Clients for the avatar and display-name lookup services.

The avatar lookup tries several strategies against unavatar before
giving up; the renderer only ever sees "image bytes or nothing".
"""

import asyncio
import logging
import re

import aiohttp

logger = logging.getLogger(__name__)

UNAVATAR_URL = "https://unavatar.io/twitter"
FXTWITTER_URL = "https://api.fxtwitter.com"
USER_AGENT = "BULK-Card-Generator/1.0"

_HANDLE_RE = re.compile(r"^[A-Za-z0-9_]{1,15}$")

# (query string, timeout in seconds), tried in order
AVATAR_STRATEGIES = [
    ("?fallback=false", 5.0),  # real avatars only
    ("", 5.0),                 # service default
    ("?fallback=true", 3.0),   # explicit fallback image
]


def sanitize_username(raw):
    """Trim whitespace and a single leading '@'."""
    name = (raw or "").strip()
    if name.startswith("@"):
        name = name[1:]
    return name.strip()


def is_valid_handle(name):
    return bool(_HANDLE_RE.match(name or ""))


async def fetch_avatar(session, username, base_url=UNAVATAR_URL):
    """Fetch the raw avatar image for a handle.

    Args:
        session: aiohttp ClientSession.
        username: Handle, with or without a leading '@'.
        base_url: Avatar service root; the handle is appended as a path
            segment.

    Returns:
        ``(bytes, content_type)`` or None when every strategy failed.
    """
    name = sanitize_username(username)
    if not is_valid_handle(name):
        logger.debug("Invalid username format: %r", name)
        return None

    headers = {"User-Agent": USER_AGENT}
    for i, (query, timeout) in enumerate(AVATAR_STRATEGIES, 1):
        url = f"{base_url.rstrip('/')}/{name}{query}"
        try:
            async with session.get(
                url, headers=headers,
                timeout=aiohttp.ClientTimeout(total=timeout),
            ) as resp:
                logger.debug("Avatar strategy %d %s -> %s", i, url,
                             resp.status)
                if resp.status != 200:
                    continue
                body = await resp.read()
                content_type = resp.headers.get("Content-Type", "image/png")
                return body, content_type
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.debug("Avatar strategy %d %s failed: %s", i, url, exc)

    logger.warning("All avatar strategies failed for %s", name)
    return None


async def fetch_display_name(session, username, base_url=FXTWITTER_URL):
    """Look up the human-readable display name for a handle.

    Returns None on any failure.
    """
    name = sanitize_username(username)
    if not name:
        return None

    url = f"{base_url.rstrip('/')}/{name}"
    try:
        async with session.get(
            url, headers={"User-Agent": USER_AGENT},
            timeout=aiohttp.ClientTimeout(total=5),
        ) as resp:
            if resp.status != 200:
                return None
            payload = await resp.json(content_type=None)
    except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
        logger.debug("Display-name lookup for %s failed: %s", name, exc)
        return None

    user = payload.get("user") if isinstance(payload, dict) else None
    if not isinstance(user, dict):
        return None
    display = user.get("name")
    if isinstance(display, str) and display.strip():
        return display.strip()
    return None
