"""Google OAuth token client using Authlib.

Issues access tokens through the OAuth 2.0 implicit (token) flow. The user
consents in a browser and the redirect URL, whose fragment carries the
token, is handed back through a consent prompt. No refresh token is
requested and nothing is written to disk.

Token issuance is event based: ``request_access_token()`` returns at once,
and the outcome of each attempt is published to the ``on_token`` or
``on_error`` callback registered in ``init()``.

Example:
    >>> auth = AuthClient(SdkLoader(), consent=console_consent)
    >>> await auth.init(client_id, DEFAULT_SCOPES, on_token, on_error)
    >>> auth.request_access_token()
"""

from __future__ import annotations

import asyncio
import logging
import webbrowser
from collections.abc import Awaitable, Callable
from typing import Any

from authlib.oauth2 import OAuth2Error

from gcal_session.config import DEFAULT_REDIRECT_URI
from gcal_session.exceptions import AuthError
from gcal_session.loader import AUTH_SDK, SdkDescriptor, SdkLoader

logger = logging.getLogger(__name__)


# Calendar OAuth scopes
SCOPES = {
    "calendar_readonly": "https://www.googleapis.com/auth/calendar.readonly",
    "calendar_events": "https://www.googleapis.com/auth/calendar.events",
}

DEFAULT_SCOPES = ["calendar_events", "calendar_readonly"]

TokenHandler = Callable[[dict[str, Any]], Awaitable[None]]
ErrorHandler = Callable[[AuthError], Awaitable[None]]
ConsentPrompt = Callable[[str], Awaitable[str]]


def resolve_scopes(scopes: list[str]) -> list[str]:
    """Resolve scope names to full URLs."""
    resolved = []
    for scope in scopes:
        if scope.startswith("https://"):
            resolved.append(scope)
        elif scope in SCOPES:
            resolved.append(SCOPES[scope])
        else:
            raise ValueError(
                f"Unknown scope: {scope}. Use full URL or one of: {list(SCOPES.keys())}"
            )
    return resolved


async def console_consent(url: str) -> str:
    """Open the consent page and read the redirect URL from the console."""
    print(f"Authorization URL:\n{url}\n")
    webbrowser.open(url)
    return (await asyncio.to_thread(input, "Paste redirect URL: ")).strip()


class AuthClient:
    """Token-issuing client bound to one OAuth client id and scope set."""

    AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
    REVOKE_URL = "https://oauth2.googleapis.com/revoke"

    def __init__(
        self,
        loader: SdkLoader,
        consent: ConsentPrompt | None = None,
        redirect_uri: str = DEFAULT_REDIRECT_URI,
        sdk: SdkDescriptor = AUTH_SDK,
    ) -> None:
        """Initialize the (not yet configured) authorization client.

        Args:
            loader: Loader used to bring in the authorization SDK.
            consent: Coroutine that shows the consent URL and returns the
                redirect URL. Defaults to ``console_consent``.
            redirect_uri: Redirect URI registered for the OAuth client.
            sdk: Descriptor of the authorization SDK.
        """
        self._loader = loader
        self._consent = consent or console_consent
        self._sdk = sdk
        self.redirect_uri = redirect_uri
        self.client_id: str | None = None
        self.required_scopes: list[str] = []
        self._client: Any = None
        self._on_token: TokenHandler | None = None
        self._on_error: ErrorHandler | None = None
        self._tasks: set[asyncio.Task] = set()
        self.ready = False

    async def init(
        self,
        client_id: str | None,
        scopes: list[str],
        on_token: TokenHandler,
        on_error: ErrorHandler,
    ) -> AuthClient:
        """Load the SDK, construct the OAuth client and register callbacks.

        Ready means the client exists, not that a token has been issued.

        Raises:
            LoadError: If the authorization SDK cannot be loaded.
            AuthError: If the OAuth client cannot be constructed.
        """
        await self._loader.ensure_loaded(self._sdk)
        httpx_client = self._loader.module(self._sdk)

        if not client_id:
            raise AuthError("OAuth client id is not configured")

        self.required_scopes = resolve_scopes(scopes)
        try:
            self._client = httpx_client.AsyncOAuth2Client(
                client_id=client_id,
                scope=" ".join(self.required_scopes),
                redirect_uri=self.redirect_uri,
            )
        except Exception as e:
            raise AuthError(f"Failed to configure OAuth client: {e}") from e

        self.client_id = client_id
        self._on_token = on_token
        self._on_error = on_error
        self.ready = True
        logger.info(f"Authorization client ready with scopes: {self.required_scopes}")
        return self

    def request_access_token(self) -> asyncio.Task:
        """Start a token request; the outcome is delivered to the callbacks."""
        if not self.ready:
            raise AuthError("Authorization client is not initialized")
        task = asyncio.ensure_future(self._run_token_request())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def get_authorization_url(self) -> tuple[str, str]:
        """Build an implicit-grant authorization URL.

        Returns:
            Tuple of (url, state).
        """
        return self._client.create_authorization_url(
            self.AUTHORIZE_URL,
            response_type="token",
            include_granted_scopes="true",
        )

    async def _run_token_request(self) -> None:
        try:
            url, state = self.get_authorization_url()
            redirect = await self._consent(url)
            if not redirect:
                raise AuthError("Authorization was cancelled")
            token = self._client.token_from_fragment(redirect, state=state)
        except AuthError as e:
            logger.error(f"Token request failed: {e}")
            await self._on_error(e)
            return
        except OAuth2Error as e:
            logger.error(f"Token request rejected: {e}")
            await self._on_error(AuthError(f"Authorization failed: {e}"))
            return
        except Exception as e:
            logger.error(f"Token request errored: {e}")
            await self._on_error(AuthError(f"Token request failed: {e}"))
            return

        logger.info("Access token issued")
        await self._on_token(dict(token))

    async def revoke(self, access_token: str) -> None:
        """Revoke a token with Google. Best effort: failures are only logged."""
        try:
            await self._client.request(
                "POST",
                self.REVOKE_URL,
                params={"token": access_token},
                withhold_token=True,
            )
        except Exception as e:
            logger.warning(f"Failed to revoke token remotely: {e}")
            return

        logger.info("Token revoked successfully")

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
