"""Dependency container wiring for the application."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from kinrecall.adapters.checkout_client import HttpxCheckoutClient
from kinrecall.adapters.supabase_backend import SupabaseLiveBackend
from kinrecall.config import Configured, Settings, resolve_backend_config
from kinrecall.services.backends import Backend, DemoBackend
from kinrecall.services.checkout import CheckoutService
from kinrecall.services.session_manager import SessionManager
from kinrecall.services.session_store import SessionStore

logger = logging.getLogger(__name__)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    session_store: SessionStore
    session_manager: SessionManager
    checkout_service: CheckoutService
    close_resources: Callable[[], Awaitable[None]]


def build_backend(settings: Settings) -> Backend:
    """Pick the live or demo backend from configuration."""
    backend_config = resolve_backend_config(settings)
    if isinstance(backend_config, Configured):
        supabase_client = create_client(backend_config.url, backend_config.key)
        return SupabaseLiveBackend(supabase_client)
    logger.info("Supabase is not configured; running in demo mode")
    return DemoBackend()


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    session_store = SessionStore()
    session_manager = SessionManager(
        store=session_store, backend=build_backend(resolved_settings)
    )
    checkout_client = (
        HttpxCheckoutClient.create(
            resolved_settings.checkout_url,
            timeout_seconds=resolved_settings.checkout_timeout_seconds,
        )
        if resolved_settings.checkout_url
        else None
    )
    checkout_service = CheckoutService(checkout_client)

    async def close_resources() -> None:
        session_manager.close()
        if checkout_client is not None:
            await checkout_client.close()

    return AppContainer(
        settings=resolved_settings,
        session_store=session_store,
        session_manager=session_manager,
        checkout_service=checkout_service,
        close_resources=close_resources,
    )
