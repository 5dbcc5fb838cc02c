"""Domain models for identities, families and the session snapshot."""

from dataclasses import dataclass, field
from enum import Enum

Identity = str


@dataclass(frozen=True)
class Credentials:
    """Email and password submitted by the user."""

    email: str
    password: str


@dataclass(frozen=True)
class Family:
    """A named group whose members share a vault."""

    id: str
    name: str


@dataclass(frozen=True)
class SessionSnapshot:
    """Immutable view of the current session state."""

    identity: Identity | None = None
    current_family: str | None = None
    families: tuple[Family, ...] = field(default_factory=tuple)

    def has_family(self, family_id: str) -> bool:
        """Return true when the id belongs to a visible family."""
        return any(family.id == family_id for family in self.families)


class AuthStatus(Enum):
    """Authentication lifecycle of the session."""

    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True)
class SignUpOutcome:
    """Result of a sign-up attempt."""

    status: str
    identity: Identity | None = None
    notice: str | None = None


@dataclass(frozen=True)
class CheckoutOutcome:
    """Either a redirect target or a user-facing notice."""

    redirect_url: str | None = None
    notice: str | None = None
