"""Lazy loading of the two third-party SDKs the client drives.

The data SDK (google-api-python-client) and the authorization SDK (Authlib's
httpx integration) are imported on first use, off the event loop, and at most
once per process. A module that is already imported and exposes its API
surface is returned without any import work.

Example:
    >>> loader = SdkLoader()
    >>> await loader.ensure_loaded(DATA_SDK)
    >>> discovery = loader.module(DATA_SDK)
"""

from __future__ import annotations

import asyncio
import importlib
import logging
import sys
from collections.abc import Callable
from dataclasses import dataclass, replace
from types import ModuleType

from gcal_session.exceptions import LoadError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SdkDescriptor:
    """Describes an SDK module and the API surface it must expose."""

    name: str
    module: str
    surface: str
    probe_delay: float | None = None

    def with_probe_delay(self, delay: float) -> SdkDescriptor:
        """Return a copy with a different readiness-probe delay."""
        return replace(self, probe_delay=delay)


DATA_SDK = SdkDescriptor(
    name="google-api-python-client",
    module="googleapiclient.discovery",
    surface="build",
)

AUTH_SDK = SdkDescriptor(
    name="authlib",
    module="authlib.integrations.httpx_client",
    surface="AsyncOAuth2Client",
    probe_delay=0.1,
)


def _resolve_surface(module: ModuleType, surface: str) -> object | None:
    """Walk a dotted attribute path, returning None if any part is missing."""
    obj: object = module
    for part in surface.split("."):
        obj = getattr(obj, part, None)
        if obj is None:
            return None
    return obj


class SdkLoader:
    """Ensures SDK modules are present exactly once.

    Concurrent ``ensure_loaded`` calls for the same module share a single
    in-flight import.
    """

    def __init__(self, importer: Callable[[str], ModuleType] | None = None):
        """Initialize the loader.

        Args:
            importer: Function used to import a module by name.
                Defaults to ``importlib.import_module``.
        """
        self._importer = importer or importlib.import_module
        self._modules: dict[str, ModuleType] = {}
        self._pending: dict[str, asyncio.Future[ModuleType]] = {}
        self.import_count = 0

    def _lookup(self, sdk: SdkDescriptor) -> ModuleType | None:
        return self._modules.get(sdk.module) or sys.modules.get(sdk.module)

    def is_loaded(self, sdk: SdkDescriptor) -> bool:
        """Check whether the SDK module is imported and exposes its surface."""
        module = self._lookup(sdk)
        return module is not None and _resolve_surface(module, sdk.surface) is not None

    def module(self, sdk: SdkDescriptor) -> ModuleType:
        """Return the loaded SDK module.

        Raises:
            LoadError: If ``ensure_loaded`` has not completed for this SDK.
        """
        module = self._lookup(sdk)
        if module is None:
            raise LoadError(sdk.name, "module has not been loaded")
        return module

    async def ensure_loaded(self, sdk: SdkDescriptor) -> None:
        """Make sure the SDK is importable and exposes its API surface.

        Args:
            sdk: Descriptor of the SDK to load.

        Raises:
            LoadError: If the import fails or the surface never appears.
        """
        if self.is_loaded(sdk):
            return

        pending = self._pending.get(sdk.module)
        if pending is None:
            pending = asyncio.ensure_future(self._load(sdk))
            self._pending[sdk.module] = pending
            pending.add_done_callback(lambda _: self._pending.pop(sdk.module, None))

        await asyncio.shield(pending)

    async def _load(self, sdk: SdkDescriptor) -> ModuleType:
        logger.info(f"Loading {sdk.name} ({sdk.module})")
        self.import_count += 1
        try:
            module = await asyncio.to_thread(self._importer, sdk.module)
        except Exception as e:
            logger.error(f"Failed to import {sdk.module}: {e}")
            raise LoadError(sdk.name, str(e)) from e

        if _resolve_surface(module, sdk.surface) is not None:
            self._modules[sdk.module] = module
            return module

        if sdk.probe_delay is None:
            raise LoadError(sdk.name, f"{sdk.module} does not expose {sdk.surface}")

        # Some SDKs finish wiring their API objects after import; probe once more
        logger.debug(f"{sdk.surface} not yet available, re-checking in {sdk.probe_delay}s")
        await asyncio.sleep(sdk.probe_delay)
        if _resolve_surface(module, sdk.surface) is None:
            raise LoadError(
                sdk.name,
                f"{sdk.module}.{sdk.surface} still missing after {sdk.probe_delay}s",
            )
        self._modules[sdk.module] = module
        return module
