"""Tests for the avatar and display-name lookup clients."""

import asyncio
import logging

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer


async def _with_session(routes, action):
    app = web.Application()
    for path, handler in routes.items():
        app.router.add_get(path, handler)
    async with TestServer(app) as server:
        async with aiohttp.ClientSession() as session:
            return await action(server, session)


@pytest.mark.parametrize("raw, expected", [
    ("elonmusk", "elonmusk"),
    ("@elonmusk", "elonmusk"),
    ("  @elon_musk  ", "elon_musk"),
    ("@", ""),
    (None, ""),
])
def test_sanitize_username(raw, expected):
    from bulkcard.lookup import sanitize_username
    assert sanitize_username(raw) == expected


@pytest.mark.parametrize("name, ok", [
    ("a", True),
    ("elon_musk", True),
    ("abcdefghijklmno", True),
    ("abcdefghijklmnop", False),
    ("bad-name", False),
    ("", False),
])
def test_is_valid_handle(name, ok):
    from bulkcard.lookup import is_valid_handle
    assert is_valid_handle(name) is ok


def test_fetch_avatar_falls_through_strategies():
    from bulkcard.lookup import fetch_avatar
    seen = []

    async def handler(request):
        seen.append(request.query.get("fallback"))
        if request.query.get("fallback") == "false":
            return web.Response(status=404)
        return web.Response(body=b"PNGDATA", content_type="image/jpeg")

    async def action(server, session):
        return await fetch_avatar(session, "@elonmusk",
                                  base_url=str(server.make_url("/twitter")))

    body, content_type = asyncio.run(
        _with_session({"/twitter/{name}": handler}, action))
    assert body == b"PNGDATA"
    assert content_type == "image/jpeg"
    assert seen == ["false", None]


def test_fetch_avatar_gives_up_after_all_strategies():
    from bulkcard.lookup import AVATAR_STRATEGIES, fetch_avatar
    calls = []

    async def handler(request):
        calls.append(request.path_qs)
        return web.Response(status=404)

    async def action(server, session):
        return await fetch_avatar(session, "ghost",
                                  base_url=str(server.make_url("/twitter")))

    assert asyncio.run(_with_session({"/twitter/{name}": handler}, action)) is None
    assert len(calls) == len(AVATAR_STRATEGIES)


def test_fetch_avatar_skips_invalid_handles(caplog):
    from bulkcard.lookup import fetch_avatar
    caplog.set_level(logging.DEBUG, logger="bulkcard.lookup")
    calls = []

    async def handler(request):
        calls.append(request.path)
        return web.Response(body=b"x")

    async def action(server, session):
        return await fetch_avatar(session, "not a handle!",
                                  base_url=str(server.make_url("/twitter")))

    assert asyncio.run(_with_session({"/twitter/{name}": handler}, action)) is None
    assert calls == []
    assert not [r for r in caplog.records if r.levelno >= logging.WARNING]


def test_fetch_display_name():
    from bulkcard.lookup import fetch_display_name

    async def handler(request):
        return web.json_response(
            {"user": {"name": f"Name of {request.match_info['name']}"}})

    async def action(server, session):
        return await fetch_display_name(session, "@elonmusk",
                                        base_url=str(server.make_url("/")))

    assert asyncio.run(_with_session({"/{name}": handler}, action)) == \
        "Name of elonmusk"


@pytest.mark.parametrize("response", [
    web.Response(status=500),
    web.Response(text="<html>nope</html>", content_type="text/html"),
    web.json_response({"user": None}),
    web.json_response({"user": {"name": "   "}}),
])
def test_fetch_display_name_failures_are_none(response):
    from bulkcard.lookup import fetch_display_name

    async def handler(request):
        return response

    async def action(server, session):
        return await fetch_display_name(session, "someone",
                                        base_url=str(server.make_url("/")))

    assert asyncio.run(_with_session({"/{name}": handler}, action)) is None
