"""Session lifecycle: SDK initialization, sign-in and sign-out.

The controller gates on both initializers, holds the single access token,
and reacts to the token events published by the authorization client. It
subscribes once, when the authorization client is initialized.

States:
    Unready -> Ready(signed-out) <-> Ready(signed-in)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from gcal_session.auth_client import DEFAULT_SCOPES, AuthClient
from gcal_session.config import Settings
from gcal_session.data_client import DataClient
from gcal_session.exceptions import AuthError, CalendarConnectionError, LoadError
from gcal_session.state import ClientState, Status

logger = logging.getLogger(__name__)

SignInListener = Callable[[], Awaitable[Any]]


@dataclass
class InitializationState:
    """Readiness of the two SDK clients. Flags only ever go from False to True."""

    data_ready: bool = False
    auth_ready: bool = False

    def mark_data_ready(self) -> None:
        self.data_ready = True

    def mark_auth_ready(self) -> None:
        self.auth_ready = True

    @property
    def ready(self) -> bool:
        return self.data_ready and self.auth_ready


@dataclass
class Session:
    """The currently held token, if any.

    ``generation`` advances on every sign-in and sign-out, so work started
    under one session can tell that the session has since changed.
    """

    token: dict[str, Any] | None = None
    generation: int = 0

    @property
    def signed_in(self) -> bool:
        return self.token is not None

    @property
    def access_token(self) -> str | None:
        return self.token.get("access_token") if self.token else None


class SessionController:
    """Owns initialization state and the session.

    Usage:
        controller = SessionController(data_client, auth_client, state, settings)
        await controller.start()
        controller.sign_in()
    """

    def __init__(
        self,
        data_client: DataClient,
        auth_client: AuthClient,
        state: ClientState,
        settings: Settings,
        scopes: list[str] | None = None,
    ) -> None:
        self.data_client = data_client
        self.auth_client = auth_client
        self.state = state
        self.settings = settings
        self.scopes = scopes or DEFAULT_SCOPES
        self.init_state = InitializationState()
        self.session = Session()
        self._listeners: list[SignInListener] = []
        self._token_request: asyncio.Task | None = None
        self._background: set[asyncio.Task] = set()

    @property
    def ready(self) -> bool:
        return self.init_state.ready

    @property
    def signed_in(self) -> bool:
        return self.session.signed_in

    @property
    def generation(self) -> int:
        return self.session.generation

    def add_sign_in_listener(self, listener: SignInListener) -> None:
        """Register a coroutine to run after every successful sign-in."""
        self._listeners.append(listener)

    # =========================================================================
    # Initialization
    # =========================================================================

    async def start(self) -> None:
        """Initialize both SDK clients concurrently.

        Failures are reported through the status message; the affected
        client simply stays not ready.
        """
        self.state.status = Status.CONNECTING
        await asyncio.gather(self._init_data_client(), self._init_auth_client())

    async def _init_data_client(self) -> None:
        try:
            await self.data_client.init(self.settings.api_key, self.settings.discovery_url)
        except CalendarConnectionError as e:
            logger.error(f"Data client initialization failed: {e}")
            self.state.status = Status.CONNECTION_ERROR
            return

        self.init_state.mark_data_ready()
        self.state.status = Status.CONNECTED
        self.request_ready()

    async def _init_auth_client(self) -> None:
        try:
            await self.auth_client.init(
                self.settings.client_id,
                self.scopes,
                on_token=self._handle_token,
                on_error=self._handle_auth_error,
            )
        except LoadError as e:
            logger.error(f"Authorization SDK failed to load: {e}")
            self.state.status = Status.LOAD_ERROR
            return
        except (AuthError, ValueError) as e:
            logger.error(f"Authorization client initialization failed: {e}")
            self.state.status = Status.AUTH_CONFIG_ERROR
            return

        self.init_state.mark_auth_ready()
        self.state.status = Status.AUTH_READY
        self.request_ready()

    def request_ready(self) -> bool:
        """Announce readiness once both clients are initialized."""
        if not self.ready:
            return False
        self.state.status = Status.READY
        return True

    # =========================================================================
    # Sign in / sign out
    # =========================================================================

    def sign_in(self) -> asyncio.Task | None:
        """Start a token request.

        No-op when not ready, already signed in, or a request is pending.
        The result arrives later through ``_handle_token``/``_handle_auth_error``.
        """
        if not self.ready:
            logger.debug("Sign-in ignored: clients not ready")
            return None
        if self.signed_in:
            logger.debug("Sign-in ignored: already signed in")
            return None
        if self._token_request is not None and not self._token_request.done():
            logger.debug("Sign-in ignored: token request already pending")
            return None

        self.state.status = Status.SIGNING_IN
        self._token_request = self.auth_client.request_access_token()
        return self._token_request

    async def _handle_token(self, token: dict[str, Any]) -> None:
        if not token.get("access_token"):
            await self._handle_auth_error(AuthError("Token response has no access token"))
            return

        self.data_client.set_token(token)
        self.session.token = token
        self.session.generation += 1
        self.state.status = Status.SIGNED_IN
        logger.info("Signed in")

        for listener in self._listeners:
            await listener()

    async def _handle_auth_error(self, error: AuthError) -> None:
        logger.error(f"Sign-in failed: {error}")
        self.state.status = Status.AUTH_ERROR

    def sign_out(self) -> asyncio.Task | None:
        """Revoke the token (without waiting) and clear local session state.

        No-op when not signed in.
        """
        if not self.signed_in:
            logger.debug("Sign-out ignored: not signed in")
            return None

        access_token = self.session.access_token
        revoke = asyncio.ensure_future(self.auth_client.revoke(access_token))
        self._background.add(revoke)
        revoke.add_done_callback(self._background.discard)

        self.data_client.set_token(None)
        self.session.token = None
        self.session.generation += 1
        self.state.clear_events()
        self.state.status = Status.SIGNED_OUT
        logger.info("Signed out")
        return revoke

    async def wait_background(self) -> None:
        """Wait for pending revoke calls."""
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)
