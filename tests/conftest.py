"""Shared test fixtures."""

import itertools
from dataclasses import dataclass, field
from uuid import uuid4

import httpx
import pytest
from supabase import AuthError as SupabaseAuthError
from supabase import PostgrestAPIError

from kinrecall.adapters.checkout_client import CheckoutClient
from kinrecall.adapters.supabase_backend import SupabaseLiveBackend
from kinrecall.config import Settings
from kinrecall.containers import AppContainer
from kinrecall.services.backends import DemoBackend
from kinrecall.services.checkout import CheckoutService
from kinrecall.services.session_manager import SessionManager
from kinrecall.services.session_store import SessionStore

_created_at = itertools.count(1)


class RejectedCredentials(SupabaseAuthError):
    """Auth error raised by the fake Supabase auth client."""

    def __init__(self, message: str = "Invalid login credentials") -> None:
        Exception.__init__(self, message)
        self.message = message


@dataclass
class FakeUser:
    id: str


@dataclass
class FakeSession:
    user: FakeUser


@dataclass
class FakeAuthResponse:
    user: FakeUser | None
    session: FakeSession | None


@dataclass
class FakeAuthSubscription:
    auth: "FakeAuth"
    callback: object

    def unsubscribe(self) -> None:
        self.auth.listeners.remove(self.callback)


@dataclass
class FakeAuth:
    """In-memory stand-in for the Supabase auth client."""

    users: dict[str, tuple[str, str]] = field(default_factory=dict)
    require_confirmation: bool = False
    session: FakeSession | None = None
    listeners: list = field(default_factory=list)
    fail_sign_out: bool = False

    def register(self, email: str, password: str) -> str:
        user_id = str(uuid4())
        self.users[email] = (password, user_id)
        return user_id

    def sign_in_with_password(self, credentials: dict[str, str]) -> FakeAuthResponse:
        stored = self.users.get(credentials["email"])
        if stored is None or stored[0] != credentials["password"]:
            raise RejectedCredentials()
        self.session = FakeSession(user=FakeUser(id=stored[1]))
        self.emit("SIGNED_IN", self.session)
        return FakeAuthResponse(user=self.session.user, session=self.session)

    def sign_up(self, credentials: dict[str, str]) -> FakeAuthResponse:
        if credentials["email"] in self.users:
            raise RejectedCredentials("User already registered")
        user = FakeUser(id=self.register(credentials["email"], credentials["password"]))
        if self.require_confirmation:
            return FakeAuthResponse(user=user, session=None)
        return FakeAuthResponse(user=user, session=FakeSession(user=user))

    def get_session(self) -> FakeSession | None:
        return self.session

    def sign_out(self) -> None:
        if self.fail_sign_out:
            raise httpx.ConnectError("network down")
        self.session = None
        self.emit("SIGNED_OUT", None)

    def on_auth_state_change(self, callback) -> FakeAuthSubscription:  # type: ignore
        self.listeners.append(callback)
        return FakeAuthSubscription(auth=self, callback=callback)

    def emit(self, event: str, session: FakeSession | None) -> None:
        for listener in list(self.listeners):
            listener(event, session)


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


@dataclass
class FakeTable:
    """Stateful fake of a Postgrest table builder."""

    name: str
    rows: list[dict[str, object]] = field(default_factory=list)
    fail_actions: set[str] = field(default_factory=set)
    inserted: list[dict[str, object]] = field(default_factory=list)

    def select(self, *_args) -> "FakeTable":
        self._action = "select"
        self._order: tuple[str, bool] | None = None
        return self

    def insert(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "insert"
        self._payload = payload
        return self

    def order(self, column: str, desc: bool = False) -> "FakeTable":
        self._order = (column, desc)
        return self

    def execute(self) -> FakeResponse:
        action = getattr(self, "_action", "select")
        if action in self.fail_actions:
            raise PostgrestAPIError(
                {"message": f"{action} on {self.name} denied", "code": "42501"}
            )
        if action == "insert":
            row = {"id": str(uuid4()), "created_at": next(_created_at)}
            row.update(self._payload)
            self.rows.append(row)
            self.inserted.append(dict(self._payload))
            return FakeResponse(data=[row])
        rows = list(self.rows)
        order = getattr(self, "_order", None)
        if order is not None:
            column, desc = order
            rows.sort(key=lambda row: row[column], reverse=desc)
        return FakeResponse(data=rows)


@dataclass
class FakeSupabaseClient:
    auth: FakeAuth = field(default_factory=FakeAuth)
    tables: dict[str, FakeTable] = field(default_factory=dict)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]


@dataclass
class FakeCheckoutClient(CheckoutClient):
    """Fake checkout client returning a fixed body."""

    body: dict[str, object] = field(
        default_factory=lambda: {"url": "https://checkout.example/session/abc"}
    )
    payloads: list[dict[str, str]] = field(default_factory=list)

    async def create_checkout_session(
        self, payload: dict[str, str]
    ) -> dict[str, object]:
        self.payloads.append(payload)
        return self.body


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        supabase_url=None,
        supabase_anon_key=None,
        checkout_url=None,
    )


@pytest.fixture
def supabase_client() -> FakeSupabaseClient:
    client = FakeSupabaseClient()
    client.auth.register("ada@example.com", "secret")
    return client


@pytest.fixture
def demo_manager() -> SessionManager:
    return SessionManager(store=SessionStore(), backend=DemoBackend())


@pytest.fixture
def live_manager(supabase_client: FakeSupabaseClient) -> SessionManager:
    return SessionManager(
        store=SessionStore(), backend=SupabaseLiveBackend(supabase_client)
    )


@pytest.fixture
def checkout_client() -> FakeCheckoutClient:
    return FakeCheckoutClient()


def _container(
    settings: Settings, manager: SessionManager, checkout_client: CheckoutClient
) -> AppContainer:
    async def close_resources() -> None:
        manager.close()

    return AppContainer(
        settings=settings,
        session_store=manager.store,
        session_manager=manager,
        checkout_service=CheckoutService(checkout_client),
        close_resources=close_resources,
    )


@pytest.fixture
def container(
    settings: Settings,
    demo_manager: SessionManager,
    checkout_client: FakeCheckoutClient,
) -> AppContainer:
    return _container(settings, demo_manager, checkout_client)


@pytest.fixture
def live_container(
    settings: Settings,
    live_manager: SessionManager,
    checkout_client: FakeCheckoutClient,
) -> AppContainer:
    return _container(settings, live_manager, checkout_client)
