# Authorization dependencies for API endpoints

from fastapi import HTTPException, status, Depends

from database.models import User, UserType
from auth.dependencies import get_current_user


class AuthError(HTTPException):
    """Custom exception for authentication/authorization errors."""

    def __init__(self, detail: str, status_code: int = status.HTTP_403_FORBIDDEN):
        super().__init__(status_code=status_code, detail=detail)


def _get_user_type(user: User) -> UserType:
    user_type = user.user_type
    if isinstance(user_type, str):
        return UserType(user_type.lower())
    return user_type


def require_user_type(*allowed_types: UserType):
    """
    Dependency that requires the user to be one of the specified types.

    Usage:
        @router.post("/requests/{request_id}/accept")
        async def accept(
            user: User = Depends(require_user_type(UserType.CREATOR))
        ):
            ...

    Unlike a blanket admin bypass, admins only pass where ADMIN is listed:
    lifecycle actions are tied to being a party of the request.
    """
    async def dependency(current_user: User = Depends(get_current_user)) -> User:
        user_type = _get_user_type(current_user)

        if user_type not in allowed_types:
            allowed_names = ", ".join(t.value for t in allowed_types)
            raise AuthError(
                detail=f"This endpoint requires user type: {allowed_names}",
                status_code=status.HTTP_403_FORBIDDEN
            )

        return current_user

    return dependency


require_brand = require_user_type(UserType.BRAND)
require_creator = require_user_type(UserType.CREATOR)
require_party = require_user_type(UserType.BRAND, UserType.CREATOR)
