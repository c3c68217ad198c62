"""Shared fixtures: in-memory Redis double, fake SMTP server, API client."""

import smtplib

import pytest
from fastapi.testclient import TestClient
from redis.exceptions import WatchError

from wardrobe_planner.config import Settings
from wardrobe_planner.main import app, init_services
from wardrobe_planner.services.mailer import Mailer


class InMemoryPipeline:
    """WATCH/MULTI/EXEC over InMemoryRedis, following redis-py's pipeline flow."""

    def __init__(self, redis):
        self.redis = redis
        self.watched = {}
        self.queued = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        self.watched = {}
        self.queued = None

    async def watch(self, *keys):
        self.watched = {k: self.redis.versions.get(k, 0) for k in keys}

    async def get(self, key):
        return await self.redis.get(key)

    def multi(self):
        self.queued = []

    def __getattr__(self, name):
        # Commands after multi() are buffered and return the pipeline
        def queue(*args, **kwargs):
            self.queued.append((name, args, kwargs))
            return self
        return queue

    async def execute(self):
        if self.redis.interleave is not None:
            interleave, self.redis.interleave = self.redis.interleave, None
            await interleave()
        if any(self.redis.versions.get(k, 0) != v for k, v in self.watched.items()):
            raise WatchError("Watched variable changed.")
        results = [await getattr(self.redis, name)(*args, **kwargs) for name, args, kwargs in self.queued]
        self.queued = None
        return results


class InMemoryRedis:
    """Async stand-in for the subset of redis.asyncio.Redis the service uses."""

    def __init__(self):
        self.data = {}
        self.versions = {}
        # Coroutine run once just before the next EXEC, to simulate another client
        self.interleave = None

    def _touch(self, key):
        self.versions[key] = self.versions.get(key, 0) + 1

    def pipeline(self, transaction=True):
        return InMemoryPipeline(self)

    async def ping(self):
        return True

    async def aclose(self):
        pass

    async def set(self, key, value, nx=False):
        if nx and key in self.data:
            return None
        self.data[key] = value
        self._touch(key)
        return True

    async def get(self, key):
        return self.data.get(key)

    async def delete(self, *keys):
        for k in keys:
            self._touch(k)
        return sum(1 for k in keys if self.data.pop(k, None) is not None)

    async def exists(self, *keys):
        return sum(1 for k in keys if k in self.data)

    async def zadd(self, key, mapping):
        self.data.setdefault(key, {}).update(mapping)
        return len(mapping)

    async def zrem(self, key, *members):
        zset = self.data.get(key, {})
        return sum(1 for m in members if zset.pop(m, None) is not None)

    async def zrevrange(self, key, start, end):
        zset = self.data.get(key, {})
        ordered = sorted(zset, key=lambda m: (zset[m], m), reverse=True)
        return ordered[start:] if end == -1 else ordered[start:end + 1]

    async def hset(self, key, mapping):
        self.data.setdefault(key, {}).update(mapping)
        return len(mapping)

    async def hget(self, key, field):
        return self.data.get(key, {}).get(field)

    async def hvals(self, key):
        return list(self.data.get(key, {}).values())

    async def lpush(self, key, *values):
        lst = self.data.setdefault(key, [])
        for v in values:
            lst.insert(0, v)
        return len(lst)

    async def ltrim(self, key, start, end):
        lst = self.data.get(key, [])
        self.data[key] = lst[start:end + 1]
        return True

    async def lrange(self, key, start, end):
        lst = self.data.get(key, [])
        return lst[start:] if end == -1 else lst[start:end + 1]


class FakeSMTP:
    """Records messages instead of talking to a mail server."""

    sent = []
    fail_with = None

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.tls = False
        self.credentials = None

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.tls = True

    def login(self, user, password):
        self.credentials = (user, password)

    def send_message(self, msg):
        if FakeSMTP.fail_with is not None:
            raise FakeSMTP.fail_with
        FakeSMTP.sent.append(msg)


@pytest.fixture
def redis():
    return InMemoryRedis()


@pytest.fixture
def email_settings():
    return Settings(
        EMAIL_USER="planner@example.com",
        EMAIL_PASS="app-password",
        EMAIL_FROM="no-reply@example.com",
        ADMIN_EMAIL="admin@example.com",
        CATALOG_SEED_DIR="",
    )


@pytest.fixture
def fake_smtp(monkeypatch):
    FakeSMTP.sent = []
    FakeSMTP.fail_with = None
    monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)
    monkeypatch.setattr(smtplib, "SMTP_SSL", FakeSMTP)
    return FakeSMTP


@pytest.fixture
def client(redis, email_settings, fake_smtp):
    """API client wired to in-memory collaborators (lifespan not run)."""
    init_services(app, redis)
    app.state.mailer = Mailer(email_settings)
    yield TestClient(app, raise_server_exceptions=False)
