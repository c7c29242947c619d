"""Tests for the session lifecycle."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from conftest import FAKE_DATA_SDK, make_importer
from gcal_session.app import CalendarApp
from gcal_session.auth_client import AuthClient
from gcal_session.data_client import DataClient
from gcal_session.exceptions import AuthError, LoadError
from gcal_session.loader import SdkDescriptor, SdkLoader
from gcal_session.session import InitializationState, Session
from gcal_session.state import Status


class TestInitializationState:
    """Test readiness flags."""

    def test_ready_needs_both(self):
        """Should only be ready when both clients are initialized."""
        state = InitializationState()
        assert state.ready is False
        state.mark_data_ready()
        assert state.ready is False
        state.mark_auth_ready()
        assert state.ready is True

    def test_session_signed_in_follows_token(self):
        """Should derive signed-in from the presence of a token."""
        session = Session()
        assert session.signed_in is False
        assert session.access_token is None
        session.token = {"access_token": "abc"}
        assert session.signed_in is True
        assert session.access_token == "abc"


class TestStart:
    """Test SDK initialization through the controller."""

    @pytest.mark.asyncio
    async def test_start_reaches_ready(self, app):
        """Should report readiness once both clients are up."""
        await app.start()

        assert app.session.ready is True
        assert app.data_client.ready is True
        assert app.auth_client.ready is True
        assert app.snapshot().status == Status.READY
        assert app.snapshot().signed_in is False

    @pytest.mark.asyncio
    async def test_data_client_failure(self, settings, auth_client):
        """Should stay unready when the Calendar service cannot be built."""

        def build(*args, **kwargs):
            raise RuntimeError("discovery document unavailable")

        module = SimpleNamespace(build=build)
        loader = SdkLoader(importer=make_importer({FAKE_DATA_SDK.module: module}))
        app = CalendarApp(
            settings,
            loader=loader,
            data_client=DataClient(loader, sdk=FAKE_DATA_SDK),
            auth_client=auth_client,
        )

        await app.start()

        assert app.session.init_state.data_ready is False
        assert app.session.init_state.auth_ready is True
        assert app.session.ready is False
        assert app.snapshot().status != Status.READY

        await app.session._init_data_client()
        assert app.snapshot().status == Status.CONNECTION_ERROR

    @pytest.mark.asyncio
    async def test_auth_load_failure(self, app):
        """Should report a load error when the auth SDK is missing."""
        app.auth_client.init_error = LoadError("authlib", "No module named 'authlib'")

        await app.start()

        assert app.session.init_state.auth_ready is False
        assert app.session.ready is False

    @pytest.mark.asyncio
    async def test_auth_sdk_import_crash_is_contained(self, settings, discovery):
        """Should report a load error instead of raising from start()."""
        auth_sdk = SdkDescriptor(
            "fake-authlib", "gcal_session_tests.fake_auth", "AsyncOAuth2Client"
        )

        def importer(name):
            if name == auth_sdk.module:
                raise RuntimeError("SDK failed during import")
            return discovery

        loader = SdkLoader(importer=importer)
        app = CalendarApp(
            settings,
            loader=loader,
            data_client=DataClient(loader, sdk=FAKE_DATA_SDK),
            auth_client=AuthClient(loader, consent=AsyncMock(), sdk=auth_sdk),
        )

        await app.start()

        assert app.session.init_state.data_ready is True
        assert app.session.init_state.auth_ready is False
        assert app.session.ready is False

        await app.session._init_auth_client()
        assert app.snapshot().status == Status.LOAD_ERROR

    @pytest.mark.asyncio
    async def test_auth_config_failure_status(self, app):
        """Should report a configuration error when the auth client cannot be built."""
        app.auth_client.init_error = AuthError("OAuth client id is not configured")

        await app.session._init_auth_client()

        assert app.snapshot().status == Status.AUTH_CONFIG_ERROR

    @pytest.mark.asyncio
    async def test_request_ready_before_init(self, app):
        """Should be a no-op until both clients are ready."""
        assert app.session.request_ready() is False
        assert app.snapshot().status == Status.INITIALIZING


class TestSignIn:
    """Test sign-in."""

    @pytest.mark.asyncio
    async def test_sign_in_installs_token_and_loads_events(self, app, calendar, auth_client):
        """Should install the token, flip the flag and run the first refresh."""
        calendar.add("Later", "2099-01-01T10:00:00Z", "2099-01-01T11:00:00Z")
        await app.start()

        await app.sign_in()

        snapshot = app.snapshot()
        assert snapshot.signed_in is True
        assert app.data_client.get_token()["access_token"] == "test-access-token"
        assert [event.summary for event in snapshot.events] == ["Later"]
        assert auth_client.requests == 1
        assert calendar.call_names() == ["list"]

    @pytest.mark.asyncio
    async def test_sign_in_before_ready_is_noop(self, app, auth_client, calendar):
        """Should not request a token before initialization."""
        await app.sign_in()

        assert auth_client.requests == 0
        assert app.snapshot().signed_in is False
        assert calendar.calls == []

    @pytest.mark.asyncio
    async def test_sign_in_when_signed_in_is_noop(self, app, auth_client):
        """Should not request a second token."""
        await app.start()
        await app.sign_in()
        await app.sign_in()

        assert auth_client.requests == 1

    @pytest.mark.asyncio
    async def test_pending_request_is_not_duplicated(self, app, auth_client):
        """Should ignore sign-in while a token request is still pending."""
        await app.start()

        first = app.session.sign_in()
        second = app.session.sign_in()
        await first

        assert second is None
        assert auth_client.requests == 1

    @pytest.mark.asyncio
    async def test_sign_in_error(self, app, calendar):
        """Should stay signed out and report an authorization error."""
        app.auth_client.error = AuthError("access_denied")
        await app.start()

        await app.sign_in()

        assert app.snapshot().signed_in is False
        assert app.snapshot().status == Status.AUTH_ERROR
        assert app.data_client.get_token() is None
        assert calendar.calls == []

    @pytest.mark.asyncio
    async def test_token_without_access_token(self, app):
        """Should treat an empty token response as an authorization error."""
        app.auth_client.token = {"token_type": "Bearer"}
        await app.start()

        await app.sign_in()

        assert app.snapshot().signed_in is False
        assert app.snapshot().status == Status.AUTH_ERROR


class TestSignOut:
    """Test sign-out."""

    @pytest.mark.asyncio
    async def test_sign_out_clears_everything(self, app, calendar, auth_client):
        """Should revoke, clear the token and empty the event list."""
        calendar.add("Later", "2099-01-01T10:00:00Z", "2099-01-01T11:00:00Z")
        await app.start()
        await app.sign_in()
        assert app.snapshot().events

        await app.sign_out()

        snapshot = app.snapshot()
        assert snapshot.signed_in is False
        assert snapshot.events == ()
        assert snapshot.status == Status.SIGNED_OUT
        assert app.data_client.get_token() is None

        await app.aclose()
        assert auth_client.revoked == ["test-access-token"]

    @pytest.mark.asyncio
    async def test_sign_out_does_not_wait_for_revoke(self, app):
        """Should clear local state even while the revoke call is still running."""
        revoke_started = asyncio.Event()
        release = asyncio.Event()

        async def slow_revoke(access_token):
            revoke_started.set()
            await release.wait()

        app.auth_client.revoke = slow_revoke
        await app.start()
        await app.sign_in()

        task = app.session.sign_out()

        assert app.snapshot().signed_in is False
        assert app.snapshot().events == ()
        await revoke_started.wait()
        assert not task.done()
        release.set()
        await task

    @pytest.mark.asyncio
    async def test_sign_out_when_signed_out_is_noop(self, app, auth_client):
        """Should do nothing without a session."""
        await app.start()
        assert app.session.sign_out() is None
        assert auth_client.revoked == []

    @pytest.mark.asyncio
    async def test_sign_in_again_after_sign_out(self, app, auth_client):
        """Should allow a fresh sign-in after signing out."""
        await app.start()
        await app.sign_in()
        assert app.session.generation == 1
        await app.sign_out()
        assert app.session.generation == 2
        await app.sign_in()
        assert app.session.generation == 3

        assert app.snapshot().signed_in is True
        assert auth_client.requests == 2

