"""Observable holder for the session snapshot."""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace

from kinrecall.domain.models import Family, Identity, SessionSnapshot

logger = logging.getLogger(__name__)

Listener = Callable[[SessionSnapshot], None]


@dataclass
class StoreSubscription:
    """Handle returned by ``SessionStore.subscribe``."""

    store: "SessionStore"
    token: int

    def unsubscribe(self) -> None:
        """Stop delivering notifications to the listener."""
        self.store._listeners.pop(self.token, None)

    @property
    def active(self) -> bool:
        return self.token in self.store._listeners


class SessionStore:
    """Holds the session snapshot and notifies subscribers on change.

    Mutators replace the whole snapshot, so readers never observe a
    partially applied update. Listeners run synchronously, in subscription
    order, after every mutation that changes the snapshot.
    """

    def __init__(self) -> None:
        self._state = SessionSnapshot()
        self._listeners: dict[int, Listener] = {}
        self._next_token = 0

    @property
    def state(self) -> SessionSnapshot:
        """Return the current snapshot."""
        return self._state

    def subscribe(self, listener: Listener) -> StoreSubscription:
        """Register a listener and return its subscription."""
        token = self._next_token
        self._next_token += 1
        self._listeners[token] = listener
        return StoreSubscription(store=self, token=token)

    def set_identity(self, identity: Identity | None) -> None:
        self._commit(replace(self._state, identity=identity))

    def set_current_family(self, family_id: str | None) -> None:
        self._commit(replace(self._state, current_family=family_id))

    def set_families(self, families: Iterable[Family]) -> None:
        self._commit(replace(self._state, families=tuple(families)))

    def load_families(
        self, families: Iterable[Family], current_family: str | None
    ) -> None:
        """Replace families and selection with a single notification."""
        self._commit(
            replace(
                self._state, families=tuple(families), current_family=current_family
            )
        )

    def switch_identity(self, identity: Identity | None) -> None:
        """Adopt an identity with no families and no selection."""
        self._commit(SessionSnapshot(identity=identity))

    def reset(self) -> None:
        """Return to the empty, signed-out snapshot."""
        self._commit(SessionSnapshot())

    def _commit(self, new_state: SessionSnapshot) -> None:
        if new_state == self._state:
            return
        self._state = new_state
        for token, listener in list(self._listeners.items()):
            if token not in self._listeners:
                continue
            try:
                listener(new_state)
            except Exception:
                logger.exception(
                    "Session listener failed", extra={"subscription": token}
                )
