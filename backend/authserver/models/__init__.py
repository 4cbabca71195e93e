from authserver.models.refresh_token import RefreshToken
from authserver.models.user import User

__all__ = [
    "RefreshToken",
    "User",
]
