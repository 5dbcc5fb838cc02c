"""Backend capability interface and the in-memory demo backend."""

import itertools
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol
from uuid import uuid4

from kinrecall.domain.models import Credentials, Family, Identity, SignUpOutcome

SessionCallback = Callable[[Identity | None], None]

DEMO_FAMILY_NAME = "My Family"
DEMO_SIGN_UP_NOTICE = (
    "Sign-up is not available in demo mode. Sign in to explore with sample data."
)


class SessionSubscription(Protocol):
    """Cancellable subscription to session-change notifications."""

    @property
    def active(self) -> bool:
        """Return true while notifications are still delivered."""

    def cancel(self) -> None:
        """Stop delivering notifications."""


class Backend(Protocol):
    """Capabilities the session manager needs from an operating mode."""

    mode: str

    async def sign_in(self, credentials: Credentials) -> Identity:
        """Verify credentials and return the signed-in identity."""

    async def sign_up(self, credentials: Credentials) -> SignUpOutcome:
        """Register a new account."""

    async def sign_out(self) -> None:
        """End the backend session."""

    async def current_identity(self) -> Identity | None:
        """Return the identity of a persisted session, if any."""

    async def list_families(self, identity: Identity | None) -> list[Family]:
        """Return visible families, most recent first."""

    async def create_family(self, name: str, identity: Identity | None) -> Family:
        """Create a family owned by the identity and return it."""

    def observe_session_changes(
        self, callback: SessionCallback
    ) -> SessionSubscription:
        """Subscribe to identity changes pushed by the backend."""


@dataclass
class InertSubscription:
    """Subscription for backends that never push notifications."""

    _active: bool = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        self._active = False


@dataclass
class DemoBackend(Backend):
    """Synthetic backend used when no remote service is configured."""

    mode: str = "demo"
    families: list[Family] = field(default_factory=list)
    _provisional_id: str | None = field(default=None, init=False)
    _counter: itertools.count = field(
        default_factory=lambda: itertools.count(1), init=False
    )

    async def sign_in(self, credentials: Credentials) -> Identity:
        """Return a fresh identity and seed a starter family if needed."""
        identity = f"demo-user-{time.monotonic_ns()}-{next(self._counter)}"
        if not self.families:
            starter = Family(id=self._new_family_id(), name=DEMO_FAMILY_NAME)
            self.families.insert(0, starter)
            self._provisional_id = starter.id
        return identity

    async def sign_up(self, credentials: Credentials) -> SignUpOutcome:
        return SignUpOutcome(status="unsupported", notice=DEMO_SIGN_UP_NOTICE)

    async def sign_out(self) -> None:
        return None

    async def current_identity(self) -> Identity | None:
        return None

    async def list_families(self, identity: Identity | None) -> list[Family]:
        return list(self.families)

    async def create_family(self, name: str, identity: Identity | None) -> Family:
        """Prepend a new family, replacing the starter family if present."""
        if self._provisional_id is not None:
            self.families = [
                family for family in self.families if family.id != self._provisional_id
            ]
            self._provisional_id = None
        family = Family(id=self._new_family_id(), name=name)
        self.families.insert(0, family)
        return family

    def observe_session_changes(
        self, callback: SessionCallback
    ) -> SessionSubscription:
        return InertSubscription()

    def _new_family_id(self) -> str:
        return f"demo-family-{next(self._counter)}-{uuid4().hex[:8]}"
