"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from kinrecall.api.models import (
    CheckoutPayload,
    CreateFamilyPayload,
    CredentialsPayload,
    FamilyModel,
    SessionModel,
)
from kinrecall.app_logging import configure_logging
from kinrecall.containers import AppContainer
from kinrecall.domain.errors import (
    AuthError,
    KinRecallError,
    PartialFailure,
    PreconditionError,
    TransportError,
    ValidationError,
)
from kinrecall.domain.models import Credentials
from kinrecall.domain.plans import pricing_tiers
from kinrecall.services.session_manager import SessionManager

_ERROR_STATUS: dict[type[KinRecallError], int] = {
    AuthError: 401,
    ValidationError: 422,
    PreconditionError: 409,
    PartialFailure: 502,
    TransportError: 503,
}


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        manager: SessionManager = app.state.container.session_manager
        manager.observe_session_changes()
        await manager.restore_session()
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(KinRecallError)
    async def handle_session_error(
        request: Request, exc: KinRecallError
    ) -> JSONResponse:
        logger.warning(
            "Request failed: %s", exc, extra={"path": request.url.path}
        )
        return JSONResponse(
            status_code=_ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST),
            content={"error": exc.kind, "detail": str(exc)},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/session")
    async def session(request: Request) -> SessionModel:
        """Return the current session snapshot."""
        return _session_model(request.app.state.container.session_manager)

    @app.post("/auth/sign-in")
    async def sign_in(payload: CredentialsPayload, request: Request) -> SessionModel:
        """Sign in and load the caller's families."""
        manager: SessionManager = request.app.state.container.session_manager
        await manager.sign_in(Credentials(payload.email, payload.password))
        return _session_model(manager)

    @app.post("/auth/sign-up")
    async def sign_up(
        payload: CredentialsPayload, request: Request
    ) -> dict[str, str | None]:
        """Register an account; the session stays signed out."""
        manager: SessionManager = request.app.state.container.session_manager
        outcome = await manager.sign_up(Credentials(payload.email, payload.password))
        return {
            "status": outcome.status,
            "identity": outcome.identity,
            "notice": outcome.notice,
        }

    @app.post("/auth/sign-out")
    async def sign_out(request: Request) -> SessionModel:
        """Sign out and clear the session."""
        manager: SessionManager = request.app.state.container.session_manager
        await manager.sign_out()
        return _session_model(manager)

    @app.get("/families")
    async def list_families(request: Request) -> SessionModel:
        """Reload the visible families."""
        manager: SessionManager = request.app.state.container.session_manager
        await manager.list_families()
        return _session_model(manager)

    @app.post("/families", status_code=status.HTTP_201_CREATED)
    async def create_family(
        payload: CreateFamilyPayload, request: Request
    ) -> FamilyModel:
        """Create a family and select it."""
        manager: SessionManager = request.app.state.container.session_manager
        family = await manager.create_family(payload.name)
        return FamilyModel(id=family.id, name=family.name)

    @app.post("/families/{family_id}/select")
    async def select_family(family_id: str, request: Request) -> SessionModel:
        """Select a visible family; unknown ids leave the session unchanged."""
        manager: SessionManager = request.app.state.container.session_manager
        manager.select_family(family_id)
        return _session_model(manager)

    @app.get("/plans")
    async def plans() -> dict[str, object]:
        """Return the purchasable pricing tiers."""
        return {"plans": pricing_tiers()}

    @app.post("/checkout")
    async def checkout(payload: CheckoutPayload, request: Request) -> JSONResponse:
        """Start checkout for the selected plan."""
        state_container: AppContainer = request.app.state.container
        snapshot = state_container.session_store.state
        outcome = await state_container.checkout_service.start_checkout(
            payload.plan, snapshot.identity, snapshot.current_family
        )
        if outcome.redirect_url:
            return JSONResponse({"redirect_url": outcome.redirect_url})
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"notice": outcome.notice},
        )

    return app


def _session_model(manager: SessionManager) -> SessionModel:
    snapshot = manager.state
    return SessionModel(
        mode=manager.mode,
        status=manager.status.value,
        identity=snapshot.identity,
        current_family=snapshot.current_family,
        families=[
            FamilyModel(id=family.id, name=family.name) for family in snapshot.families
        ],
    )
