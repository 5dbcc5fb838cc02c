"""Supabase-backed live backend."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

import httpx
from supabase import AuthError as SupabaseAuthError
from supabase import Client, PostgrestAPIError

from kinrecall.domain.errors import (
    AuthError,
    PartialFailure,
    PreconditionError,
    TransportError,
)
from kinrecall.domain.models import Credentials, Family, Identity, SignUpOutcome
from kinrecall.services.backends import Backend, SessionCallback

logger = logging.getLogger(__name__)

_T = TypeVar("_T")
_BACKEND_ERRORS = (SupabaseAuthError, PostgrestAPIError, httpx.HTTPError)


@dataclass
class SupabaseSessionSubscription:
    """Forwards auth state changes onto the owning event loop."""

    loop: asyncio.AbstractEventLoop
    callback: SessionCallback
    handle: Any = None
    _active: bool = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        """Stop forwarding and release the Supabase listener."""
        if not self._active:
            return
        self._active = False
        if self.handle is not None:
            self.handle.unsubscribe()

    def on_auth_event(self, _event: object, session: Any) -> None:
        """Receive a Supabase auth event from any thread."""
        if not self._active:
            return
        identity = _session_user_id(session)
        self.loop.call_soon_threadsafe(self._deliver, identity)

    def _deliver(self, identity: Identity | None) -> None:
        if self._active:
            self.callback(identity)


@dataclass
class SupabaseLiveBackend(Backend):
    """Live backend using Supabase auth and the families tables.

    The Supabase client is synchronous; each call runs in a worker thread so
    the event loop stays responsive.
    """

    client: Client
    mode: str = "live"

    async def sign_in(self, credentials: Credentials) -> Identity:
        """Verify credentials with Supabase auth."""
        try:
            response = await self._run(
                self.client.auth.sign_in_with_password,
                {"email": credentials.email, "password": credentials.password},
            )
        except _BACKEND_ERRORS as exc:
            raise AuthError(f"Sign-in failed: {exc}") from exc
        identity = _user_id(response)
        if identity is None:
            raise AuthError("Sign-in failed: no user returned")
        return identity

    async def sign_up(self, credentials: Credentials) -> SignUpOutcome:
        """Register with Supabase auth; confirmation may still be pending."""
        try:
            response = await self._run(
                self.client.auth.sign_up,
                {"email": credentials.email, "password": credentials.password},
            )
        except _BACKEND_ERRORS as exc:
            raise AuthError(f"Sign-up failed: {exc}") from exc
        identity = _user_id(response)
        if getattr(response, "session", None) is None:
            return SignUpOutcome(
                status="pending_confirmation",
                identity=identity,
                notice="Check your email to confirm your account, then sign in.",
            )
        return SignUpOutcome(status="created", identity=identity)

    async def sign_out(self) -> None:
        try:
            await self._run(self.client.auth.sign_out)
        except _BACKEND_ERRORS as exc:
            raise TransportError(f"Sign-out failed: {exc}") from exc

    async def current_identity(self) -> Identity | None:
        """Return the user of the persisted Supabase session."""
        try:
            session = await self._run(self.client.auth.get_session)
        except _BACKEND_ERRORS as exc:
            raise TransportError(f"Session lookup failed: {exc}") from exc
        return _session_user_id(session)

    async def list_families(self, identity: Identity | None) -> list[Family]:
        """Return families visible through row-level security."""

        def query() -> list[dict[str, Any]]:
            response = (
                self.client.table("families")
                .select("id, name, created_at")
                .order("created_at", desc=True)
                .execute()
            )
            return response.data or []

        try:
            rows = await self._run(query)
        except _BACKEND_ERRORS as exc:
            raise TransportError(f"Failed to load families: {exc}") from exc
        return [Family(id=str(row["id"]), name=row["name"]) for row in rows]

    async def create_family(self, name: str, identity: Identity | None) -> Family:
        """Insert the family row, then the creator's admin membership."""
        if identity is None:
            raise PreconditionError("Sign in before creating a family")

        def insert_family() -> dict[str, Any]:
            response = (
                self.client.table("families")
                .insert({"name": name, "created_by": identity})
                .execute()
            )
            if not response.data:
                raise TransportError("Failed to create family in Supabase")
            return response.data[0]

        def insert_membership(family_id: str) -> None:
            self.client.table("family_members").insert(
                {"family_id": family_id, "user_id": identity, "role": "admin"}
            ).execute()

        try:
            row = await self._run(insert_family)
        except _BACKEND_ERRORS as exc:
            raise TransportError(f"Failed to create family: {exc}") from exc
        family = Family(id=str(row["id"]), name=row["name"])
        try:
            await self._run(insert_membership, family.id)
        except _BACKEND_ERRORS as exc:
            logger.exception(
                "Membership insert failed after family creation",
                extra={"family_id": family.id},
            )
            raise PartialFailure(
                f"Family was created but membership failed: {exc}",
                family_id=family.id,
            ) from exc
        return family

    def observe_session_changes(
        self, callback: SessionCallback
    ) -> SupabaseSessionSubscription:
        """Subscribe to Supabase auth state changes."""
        subscription = SupabaseSessionSubscription(
            loop=asyncio.get_running_loop(), callback=callback
        )
        subscription.handle = self.client.auth.on_auth_state_change(
            subscription.on_auth_event
        )
        return subscription

    async def _run(self, func: Callable[..., _T], *args: Any) -> _T:
        return await asyncio.to_thread(func, *args)


def _user_id(response: Any) -> Identity | None:
    user = getattr(response, "user", None)
    if user is None:
        return None
    return str(user.id)


def _session_user_id(session: Any) -> Identity | None:
    if session is None:
        return None
    return _user_id(session)
