"""Shared fixtures: a throwaway asset tree and an in-memory loader."""

import asyncio

import pytest
from PIL import Image

MASCOT_COLOR = (200, 50, 50, 255)
BACKDROP_COLOR = (30, 90, 220)
LOGO_COLOR = (250, 250, 250, 255)
AVATAR_COLOR = (40, 160, 240, 255)


@pytest.fixture
def assets_dir(tmp_path):
    """Minimal artwork tree laid out like the bundled assets."""
    root = tmp_path / "assets"
    (root / "backgrounds").mkdir(parents=True)
    (root / "card-backgrounds").mkdir()
    (root / "avatars").mkdir()

    Image.new("RGBA", (200, 400), MASCOT_COLOR).save(
        root / "backgrounds" / "1.png")
    Image.new("RGBA", (400, 400), (90, 200, 90, 255)).save(
        root / "backgrounds" / "2.png")
    Image.new("RGB", (1600, 900), BACKDROP_COLOR).save(
        root / "card-backgrounds" / "1.jpg")
    Image.new("RGBA", (200, 50), LOGO_COLOR).save(root / "logo.png")
    Image.new("RGBA", (256, 256), AVATAR_COLOR).save(
        root / "avatars" / "elonmusk.png")
    return root


class FakeLoader:
    """Loader returning pre-made images after configurable delays."""

    def __init__(self, images=None, avatar=None, delays=None):
        self.images = images or {}
        self.avatar = avatar
        self.delays = delays or {}
        self.requested = []

    async def load_image(self, url, timeout):
        self.requested.append(url)
        await asyncio.sleep(self.delays.get(url, 0))
        return self.images.get(url)

    async def load_avatar(self, username, timeout, endpoint=None):
        self.requested.append(f"avatar:{username}")
        await asyncio.sleep(self.delays.get("avatar", 0))
        return self.avatar


@pytest.fixture
def fake_loader():
    return FakeLoader
