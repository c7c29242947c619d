"""Shared fakes for the calendar client tests."""

import asyncio
import itertools
from datetime import datetime
from types import SimpleNamespace

import pytest

from gcal_session.app import CalendarApp
from gcal_session.config import Settings
from gcal_session.data_client import DataClient
from gcal_session.loader import SdkDescriptor, SdkLoader

FAKE_DATA_SDK = SdkDescriptor(
    name="fake-discovery",
    module="gcal_session_tests.fake_discovery",
    surface="build",
)


def _instant(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class FakeRequest:
    """Stands in for a googleapiclient HttpRequest."""

    def __init__(self, fn):
        self._fn = fn

    def execute(self, http=None):
        return self._fn()


class FakeEventsResource:
    def __init__(self, calendar):
        self._calendar = calendar

    def list(self, **params):
        self._calendar.calls.append(("list", params))
        return FakeRequest(lambda: self._calendar.do_list(params))

    def insert(self, calendarId, body):
        self._calendar.calls.append(("insert", {"calendarId": calendarId, "body": body}))
        return FakeRequest(lambda: self._calendar.do_insert(body))

    def delete(self, calendarId, eventId):
        self._calendar.calls.append(("delete", {"calendarId": calendarId, "eventId": eventId}))
        return FakeRequest(lambda: self._calendar.do_delete(eventId))


class FakeCalendar:
    """In-memory primary calendar behind a discovery-built service."""

    def __init__(self):
        self.items: dict[str, dict] = {}
        self.calls: list[tuple[str, dict]] = []
        self.fail_on: set[str] = set()
        self._ids = itertools.count(1)

    def events(self):
        return FakeEventsResource(self)

    def add(self, summary, start, end, **extra):
        event_id = f"evt{next(self._ids)}"
        self.items[event_id] = {
            "id": event_id,
            "summary": summary,
            "start": {"dateTime": start, "timeZone": "America/Lima"},
            "end": {"dateTime": end, "timeZone": "America/Lima"},
            "htmlLink": f"https://www.google.com/calendar/event?eid={event_id}",
            **extra,
        }
        return event_id

    def call_names(self):
        return [name for name, _ in self.calls]

    def do_list(self, params):
        if "list" in self.fail_on:
            raise RuntimeError("list failed")
        time_min = _instant(params["timeMin"])
        items = [
            item
            for item in self.items.values()
            if _instant(item["end"]["dateTime"]) > time_min
        ]
        items.sort(key=lambda item: _instant(item["start"]["dateTime"]))
        return {"items": items[: params["maxResults"]]}

    def do_insert(self, body):
        if "insert" in self.fail_on:
            raise RuntimeError("insert failed")
        event_id = f"evt{next(self._ids)}"
        item = dict(body, id=event_id)
        item["htmlLink"] = f"https://www.google.com/calendar/event?eid={event_id}"
        self.items[event_id] = item
        return item

    def do_delete(self, event_id):
        if "delete" in self.fail_on:
            raise RuntimeError("delete failed")
        if event_id not in self.items:
            raise KeyError(event_id)
        del self.items[event_id]
        return ""


class FakeAuthClient:
    """Authorization client that answers token requests immediately."""

    def __init__(self, token=None, error=None, init_error=None):
        self.token = token or {"access_token": "test-access-token", "token_type": "Bearer"}
        self.error = error
        self.init_error = init_error
        self.ready = False
        self.requests = 0
        self.revoked: list[str] = []
        self.closed = False

    async def init(self, client_id, scopes, on_token, on_error):
        if self.init_error is not None:
            raise self.init_error
        self.client_id = client_id
        self.scopes = scopes
        self._on_token = on_token
        self._on_error = on_error
        self.ready = True
        return self

    def request_access_token(self):
        self.requests += 1
        return asyncio.ensure_future(self._respond())

    async def _respond(self):
        if self.error is not None:
            await self._on_error(self.error)
        else:
            await self._on_token(dict(self.token))

    async def revoke(self, access_token):
        self.revoked.append(access_token)

    async def aclose(self):
        self.closed = True


def make_importer(modules: dict):
    """Importer for SdkLoader that serves fake modules by name."""

    def importer(name):
        if name not in modules:
            raise ImportError(f"No module named {name!r}")
        return modules[name]

    return importer


@pytest.fixture
def calendar():
    return FakeCalendar()


@pytest.fixture
def discovery(calendar):
    """Fake googleapiclient.discovery module whose build() returns the fake calendar."""
    builds = []

    def build(service_name, version, **kwargs):
        builds.append((service_name, version, kwargs))
        return calendar

    return SimpleNamespace(build=build, builds=builds)


@pytest.fixture
def loader(discovery):
    return SdkLoader(importer=make_importer({FAKE_DATA_SDK.module: discovery}))


@pytest.fixture
def settings():
    return Settings(
        client_id="test-client-id.apps.googleusercontent.com",
        api_key="test-api-key",
        open_link_delay=0,
    )


@pytest.fixture
def opened():
    return []


@pytest.fixture
def auth_client():
    return FakeAuthClient()


@pytest.fixture
def app(settings, loader, auth_client, opened):
    return CalendarApp(
        settings,
        loader=loader,
        data_client=DataClient(loader, sdk=FAKE_DATA_SDK),
        auth_client=auth_client,
        open_link=opened.append,
    )
