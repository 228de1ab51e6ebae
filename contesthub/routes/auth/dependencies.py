from typing import Optional
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from motor.motor_asyncio import AsyncIOMotorDatabase

from contesthub.config import Settings
from contesthub.models.auth.user import UserRole
from contesthub.services.auth.authorization import AuthorizationService
from contesthub.services.auth.identity import IdentityProvider
from contesthub.services.auth.user_service import UserService
from contesthub.services.payment.gateways.base import BasePaymentGateway

# Bearer scheme (missing header is reported by the identity provider)
bearer_scheme = HTTPBearer(auto_error=False)


async def get_database(request: Request) -> AsyncIOMotorDatabase:
    """Database dependency"""
    return request.app.state.database.get_db()


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_identity_provider(request: Request) -> IdentityProvider:
    return request.app.state.identity_provider


def get_payment_gateway(request: Request) -> BasePaymentGateway:
    return request.app.state.payment_gateway


async def get_caller_email(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    identity_provider: IdentityProvider = Depends(get_identity_provider)
) -> str:
    """Verified email of the caller (UnauthorizedError if missing/invalid)"""
    token = credentials.credentials if credentials else None
    return await identity_provider.verify(token)


async def get_current_user(
    caller_email: str = Depends(get_caller_email),
    db: AsyncIOMotorDatabase = Depends(get_database)
) -> dict:
    """Registered user record of the caller, any role"""
    authorization = AuthorizationService(UserService(db))
    return await authorization.resolve_caller(caller_email)


def require_role(role: UserRole):
    """
    Build a dependency that admits only callers holding exactly `role`.

    identity -> user record (NotFoundError) -> role check (ForbiddenError)
    """
    async def role_dependency(
        caller_email: str = Depends(get_caller_email),
        db: AsyncIOMotorDatabase = Depends(get_database)
    ) -> dict:
        authorization = AuthorizationService(UserService(db))
        return await authorization.authorize(role, caller_email)

    return role_dependency


require_creator = require_role(UserRole.CREATOR)
require_admin = require_role(UserRole.ADMIN)
