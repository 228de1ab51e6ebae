from typing import Optional
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from pymongo.errors import PyMongoError

from contesthub.config import Settings, get_settings
from contesthub.core.exceptions import ContestHubError, StoreError
from contesthub.database import Database
from contesthub.services.auth.identity import FirebaseIdentityProvider, IdentityProvider
from contesthub.services.payment.gateways.base import BasePaymentGateway
from contesthub.services.payment.gateways.factory import PaymentGatewayFactory
from contesthub.routes.auth.user_routes import router as user_router, admin_router as admin_user_router
from contesthub.routes.contest.contest_routes import (
    router as contest_router,
    creator_router as creator_contest_router,
    admin_router as admin_contest_router,
)
from contesthub.routes.contest.participation_routes import (
    contest_router as contest_submission_router,
    router as participation_router,
)
from contesthub.routes.contest.leaderboard_routes import router as leaderboard_router
from contesthub.routes.payment.payment_routes import router as payment_router
from contesthub.utils.response import error_response, validation_error_response


def register_exception_handlers(app: FastAPI):
    """Render typed failures with the standard response envelope"""

    @app.exception_handler(ContestHubError)
    async def contesthub_error_handler(request: Request, exc: ContestHubError):
        return error_response(
            message=exc.message,
            status_code=exc.status_code,
            error=exc.error
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = {}
        for error in exc.errors():
            field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
            errors[field or "body"] = error.get("msg", "Invalid value")
        return validation_error_response(errors=errors)

    @app.exception_handler(PyMongoError)
    async def store_error_handler(request: Request, exc: PyMongoError):
        print(f"[ERROR] Database error on {request.method} {request.url.path}: {exc}")
        return error_response(
            message=StoreError.default_message,
            status_code=StoreError.status_code,
            error=StoreError.error
        )


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    identity_provider: Optional[IdentityProvider] = None,
    payment_gateway: Optional[BasePaymentGateway] = None
) -> FastAPI:
    """
    Build the application.

    Collaborators that are not passed in are constructed from settings at
    startup; a missing required setting aborts startup.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan events for the application"""
        # Startup
        settings.validate()

        if app.state.database is None:
            app.state.database = Database(settings.mongodb_url, settings.database_name)
        await app.state.database.connect()

        if app.state.identity_provider is None:
            app.state.identity_provider = FirebaseIdentityProvider(settings.firebase_project_id)
        if app.state.payment_gateway is None:
            app.state.payment_gateway = PaymentGatewayFactory.from_settings(settings)

        yield
        # Shutdown
        await app.state.database.close()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="ContestHub API: contests, paid participation, submissions and winners",
        lifespan=lifespan
    )

    app.state.settings = settings
    app.state.database = database
    app.state.identity_provider = identity_provider
    app.state.payment_gateway = payment_gateway

    # CORS middleware
    # In development, allow all origins for easier testing
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=not settings.debug,  # Can't use credentials with wildcard origin
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Include routers with /api prefix
    app.include_router(user_router, prefix="/api")
    app.include_router(admin_user_router, prefix="/api")
    app.include_router(contest_router, prefix="/api")
    app.include_router(contest_submission_router, prefix="/api")  # Contest-specific submission routes
    app.include_router(creator_contest_router, prefix="/api")
    app.include_router(admin_contest_router, prefix="/api")
    app.include_router(participation_router, prefix="/api")
    app.include_router(leaderboard_router, prefix="/api")
    app.include_router(payment_router, prefix="/api")

    @app.get("/")
    async def read_root():
        """Root endpoint"""
        return {
            "message": f"Welcome to {settings.app_name} API",
            "version": settings.app_version,
            "docs": "/docs"
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {"status": "healthy"}

    return app


app = create_app()
