from fastapi import APIRouter, Depends, Query
from typing import Optional
from motor.motor_asyncio import AsyncIOMotorDatabase

from contesthub.core.exceptions import ForbiddenError
from contesthub.models.auth.user import UserCreate, UserRole, UserRoleUpdate
from contesthub.routes.auth.dependencies import (
    get_caller_email,
    get_current_user,
    get_database,
    require_admin,
)
from contesthub.services.auth.user_service import UserService
from contesthub.utils.response import success_response

router = APIRouter(prefix="/users", tags=["Users"])
admin_router = APIRouter(prefix="/admin/users", tags=["Admin Users"])


@router.post("")
async def register_user(
    user_data: UserCreate,
    caller_email: str = Depends(get_caller_email),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """
    Register the signed-in user.

    - Email must match the verified identity
    - Role is always `user`; creators and admins are promoted by an admin
    - Registering again returns the existing record
    """
    if user_data.email != caller_email:
        raise ForbiddenError("Email does not match the signed-in account")

    user_service = UserService(db)
    user, created = await user_service.register_user(user_data)

    return success_response(
        message="User registered successfully" if created else "User already registered",
        data={"user": user, "created": created},
        status_code=201 if created else 200
    )


@router.get("/me")
async def get_me(current_user: dict = Depends(get_current_user)):
    """Get the caller's user record"""
    return success_response(
        message="User retrieved successfully",
        data={"user": current_user}
    )


@router.get("/{email}/role")
async def get_user_role(
    email: str,
    current_user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Role lookup by email (own email, or any email for admins)"""
    if email != current_user["email"] and current_user.get("role") != UserRole.ADMIN.value:
        raise ForbiddenError("Cannot look up another user's role")

    user_service = UserService(db)
    role = await user_service.get_role(email)

    return success_response(
        message="Role retrieved successfully",
        data={"email": email, "role": role}
    )


@admin_router.get("")
async def list_users(
    role: Optional[UserRole] = Query(None),
    admin: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """List all users, optionally filtered by role (admin only)"""
    user_service = UserService(db)
    users = await user_service.list_users(role)

    return success_response(
        message="Users retrieved successfully",
        data={"users": users, "total": len(users)}
    )


@admin_router.patch("/{email}/role")
async def change_user_role(
    email: str,
    role_update: UserRoleUpdate,
    admin: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Change a user's role (admin only)"""
    user_service = UserService(db)
    user = await user_service.set_role(email, role_update.role)

    return success_response(
        message=f"Role updated to {role_update.role.value}",
        data={"user": user}
    )
