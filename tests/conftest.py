import asyncio
import gzip
import os
import sys
from typing import List, NamedTuple

import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer, TestClient
from multidict import CIMultiDictProxy, CIMultiDict

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from server import create_app, make_client_session, SERVER_OPTIONS

GZIPPED_REPLY = gzip.compress(b"compressed reply", mtime=0)


class Hit(NamedTuple):
    method: str
    path: str
    headers: CIMultiDictProxy
    body: bytes


class Target:
    """Small HTTP target that records every request it receives."""

    gzipped_reply = GZIPPED_REPLY

    def __init__(self):
        self.hits: List[Hit] = []
        self.server: TestServer = None
        self.app = web.Application()
        self.app.router.add_route('*', '/echo', self.echo)
        self.app.router.add_get('/slow', self.slow)
        self.app.router.add_get('/every-other-hangs', self.every_other_hangs)
        self.app.router.add_get('/status/{code}', self.status)
        self.app.router.add_get('/partial', self.partial)
        self.app.router.add_get('/gzipped', self.gzipped)

    def url(self, path: str) -> str:
        return str(self.server.make_url(path))

    async def _record(self, request: web.Request) -> int:
        body = await request.read()
        self.hits.append(Hit(request.method, request.path, CIMultiDictProxy(CIMultiDict(request.headers)), body))
        return len(self.hits) - 1

    async def echo(self, request):
        await self._record(request)
        return web.Response(text=f"echo:{request.method}")

    async def slow(self, request):
        await self._record(request)
        await asyncio.sleep(0.1)
        return web.Response(text="slow")

    async def every_other_hangs(self, request):
        index = await self._record(request)
        if index % 2:
            await asyncio.sleep(1.0)
        return web.Response(text=f"hit {index}")

    async def status(self, request):
        await self._record(request)
        return web.Response(status=int(request.match_info['code']), text="status")

    async def gzipped(self, request):
        await self._record(request)
        return web.Response(body=GZIPPED_REPLY, headers={"Content-Encoding": "gzip"})

    async def partial(self, request):
        await self._record(request)
        response = web.StreamResponse()
        response.content_length = 1000
        await response.prepare(request)
        await response.write(b"partial")
        await asyncio.sleep(1.0)
        return response


@pytest_asyncio.fixture
async def target():
    t = Target()
    # Hits keep the bytes exactly as they arrived on the wire.
    t.server = TestServer(t.app)
    await t.server.start_server(auto_decompress=False)
    yield t
    await t.server.close()


@pytest_asyncio.fixture
async def client_session():
    session = make_client_session()
    yield session
    await session.close()


@pytest_asyncio.fixture
async def fire_client():
    server = TestServer(create_app(timeout_seconds=0.5))
    await server.start_server(**SERVER_OPTIONS)
    client = TestClient(server)
    await client.start_server()
    yield client
    await client.close()
