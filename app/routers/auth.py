from typing import Optional
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from app.core.errors import ForbiddenError, UnauthorizedError
from app.services.auth import decode_access_token

# Tokens are issued by the external auth provider; this API only reads them
oauth2_scheme_optional = OAuth2PasswordBearer(tokenUrl="api/v1/auth/token", auto_error=False)


async def get_current_user_id_optional(token: Optional[str] = Depends(oauth2_scheme_optional)) -> Optional[str]:
    if not token:
        return None
    user_id = decode_access_token(token)
    if user_id is None:
        raise UnauthorizedError()
    return user_id


def resolve_user_id(claimed: Optional[str], token_user_id: Optional[str]) -> Optional[str]:
    """
    Pick the acting user for a request.

    A bearer token wins; a ``userId`` in the body or query that disagrees with
    it is rejected. Without a token the claimed id is used as is and left to
    the services to validate.
    """
    if token_user_id is None:
        return claimed
    if claimed and claimed.strip() and claimed.strip() != token_user_id:
        raise ForbiddenError("userId does not match the authenticated user", code="FORBIDDEN")
    return token_user_id
