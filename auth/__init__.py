# Auth module
# Bearer-token identity and user-type gates for the API routers

from auth.dependencies import get_current_user, decode_access_token, create_access_token

from auth.decorators import (
    AuthError,
    require_user_type,
    require_brand,
    require_creator,
    require_party,
)

__all__ = [
    "get_current_user",
    "decode_access_token",
    "create_access_token",
    "AuthError",
    "require_user_type",
    "require_brand",
    "require_creator",
    "require_party",
]
