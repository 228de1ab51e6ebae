"""
Role Authorization
resolve identity -> resolve role -> authorize, each stage raising a typed error
"""
from typing import Dict, Union

from contesthub.core.exceptions import ForbiddenError
from contesthub.models.auth.user import UserRole
from contesthub.services.auth.user_service import UserService


def authorize(required_role: UserRole, caller_role: Union[UserRole, str]) -> None:
    """
    Permit iff the caller holds exactly the required role.

    Roles are not hierarchical: an admin does not satisfy a creator-only check.
    """
    if isinstance(caller_role, UserRole):
        caller_role = caller_role.value
    if caller_role != required_role.value:
        raise ForbiddenError(f"This action requires the {required_role.value} role")


class AuthorizationService:
    """Authorizes verified callers against their stored role"""

    def __init__(self, user_service: UserService):
        self.user_service = user_service

    async def resolve_caller(self, caller_email: str) -> Dict:
        """Look up the caller's user record (NotFoundError if unregistered)"""
        return await self.user_service.get_user_by_email(caller_email)

    async def authorize(self, required_role: UserRole, caller_email: str) -> Dict:
        """
        Resolve the caller and check their role.

        NotFoundError from the lookup propagates before any role check.

        Returns:
            The caller's user record
        """
        user = await self.resolve_caller(caller_email)
        authorize(required_role, user.get("role", UserRole.USER.value))
        return user
