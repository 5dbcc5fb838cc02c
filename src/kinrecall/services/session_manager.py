"""Identity and family orchestration over a demo or live backend."""

import asyncio
import logging
from dataclasses import dataclass, field

from kinrecall.domain.errors import KinRecallError, ValidationError
from kinrecall.domain.models import (
    AuthStatus,
    Credentials,
    Family,
    Identity,
    SessionSnapshot,
    SignUpOutcome,
)
from kinrecall.services.backends import Backend, SessionSubscription
from kinrecall.services.session_store import SessionStore

logger = logging.getLogger(__name__)


@dataclass
class SessionManager:
    """Single entry point for sign-in, family listing, creation and selection.

    Every identity change, reset and ``close`` bumps ``_epoch``. Async
    results are applied only when the epoch they started under is still
    current, so a reload for a previous identity can never land on the
    store after sign-out or a newer sign-in.
    """

    store: SessionStore
    backend: Backend
    last_error: KinRecallError | None = None
    _epoch: int = field(default=0, init=False)
    _pending_sign_ins: int = field(default=0, init=False)
    _closed: bool = field(default=False, init=False)
    _subscription: SessionSubscription | None = field(default=None, init=False)
    _tasks: set[asyncio.Task] = field(default_factory=set, init=False)

    @property
    def mode(self) -> str:
        return self.backend.mode

    @property
    def state(self) -> SessionSnapshot:
        return self.store.state

    @property
    def status(self) -> AuthStatus:
        """Return the authentication lifecycle state."""
        if self._pending_sign_ins:
            return AuthStatus.AUTHENTICATING
        if self.store.state.identity is None:
            return AuthStatus.UNAUTHENTICATED
        return AuthStatus.AUTHENTICATED

    async def sign_in(self, credentials: Credentials) -> Identity:
        """Authenticate, then reload families for the new identity."""
        self._pending_sign_ins += 1
        try:
            identity = await self.backend.sign_in(credentials)
        finally:
            self._pending_sign_ins -= 1
        if self._closed:
            return identity
        self._apply_identity(identity)
        await self.list_families()
        logger.info("Signed in", extra={"mode": self.mode})
        return identity

    async def sign_up(self, credentials: Credentials) -> SignUpOutcome:
        """Register an account without authenticating the session."""
        outcome = await self.backend.sign_up(credentials)
        logger.info(
            "Sign-up finished", extra={"mode": self.mode, "status": outcome.status}
        )
        return outcome

    async def sign_out(self) -> None:
        """End the session locally even when the backend call fails."""
        try:
            await self.backend.sign_out()
        except KinRecallError as exc:
            self._clear()
            self._report(exc)
            raise
        self._clear()

    async def restore_session(self) -> Identity | None:
        """Adopt a persisted backend session, if one exists."""
        epoch = self._epoch
        try:
            identity = await self.backend.current_identity()
        except KinRecallError as exc:
            self._report(exc)
            return None
        if identity is None or not self._is_current(epoch):
            return None
        self._apply_identity(identity)
        await self.list_families()
        return identity

    async def list_families(self) -> list[Family]:
        """Reload visible families and default the selection.

        Errors are recorded in ``last_error`` and an empty list is returned;
        the store keeps its previous families.
        """
        epoch = self._epoch
        identity = self.store.state.identity
        try:
            families = await self.backend.list_families(identity)
        except KinRecallError as exc:
            self._report(exc)
            return []
        if not self._is_current(epoch):
            logger.info("Discarding stale family list", extra={"mode": self.mode})
            return families
        current = self.store.state.current_family
        if current is None or all(family.id != current for family in families):
            current = families[0].id if families else None
        self.store.load_families(families, current)
        return families

    async def create_family(self, name: str) -> Family:
        """Create a family, reload the list and select the new entry."""
        cleaned = name.strip()
        if not cleaned:
            raise ValidationError("Family name must not be empty")
        epoch = self._epoch
        family = await self.backend.create_family(cleaned, self.store.state.identity)
        if not self._is_current(epoch):
            return family
        await self.list_families()
        if not self._is_current(epoch):
            return family
        if self.store.state.has_family(family.id):
            self.select_family(family.id)
        else:
            # Reload failed or lagged behind the insert.
            self.store.load_families((family, *self.store.state.families), family.id)
        logger.info("Family created", extra={"family_id": family.id})
        return family

    def select_family(self, family_id: str) -> None:
        """Select a visible family; unknown ids are ignored."""
        if self.store.state.has_family(family_id):
            self.store.set_current_family(family_id)

    def observe_session_changes(self) -> SessionSubscription:
        """Start following backend session changes (once)."""
        if self._subscription is None or not self._subscription.active:
            self._subscription = self.backend.observe_session_changes(
                self._on_session_change
            )
        return self._subscription

    def close(self) -> None:
        """Dispose the subscription and ignore every later result."""
        self._closed = True
        self._epoch += 1
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None

    def _on_session_change(self, identity: Identity | None) -> None:
        if self._closed:
            return
        if identity is None:
            self._clear()
            return
        if identity == self.store.state.identity:
            return
        self._apply_identity(identity)
        task = asyncio.get_running_loop().create_task(self.list_families())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _apply_identity(self, identity: Identity) -> None:
        if identity == self.store.state.identity:
            return
        self._epoch += 1
        # Families of the previous identity must never be shown under the new one.
        self.store.switch_identity(identity)

    def _clear(self) -> None:
        self._epoch += 1
        self.store.reset()

    def _is_current(self, epoch: int) -> bool:
        return not self._closed and epoch == self._epoch

    def _report(self, exc: KinRecallError) -> None:
        self.last_error = exc
        logger.warning(
            "Session operation failed: %s",
            exc,
            extra={"mode": self.mode, "kind": exc.kind},
        )
