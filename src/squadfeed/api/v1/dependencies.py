"""Shared API dependencies for authentication and database access."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from squadfeed.core.security import decode_subject
from squadfeed.db.session import get_db
from squadfeed.models import Profile

# Missing credentials are handled below so anonymous reads stay possible.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]
CredentialsDep = Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)]


def _credentials_error(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_optional_user(credentials: CredentialsDep, db: SessionDep) -> Profile | None:
    """Return the authenticated profile, or None for anonymous requests.

    Args:
        credentials: HTTP Bearer token credentials, if any
        db: Database session

    Raises:
        HTTPException: If a token was sent but is invalid or names no profile
    """
    if credentials is None:
        return None

    subject = decode_subject(credentials.credentials)
    if subject is None:
        raise _credentials_error()

    user = db.get(Profile, subject)
    if user is None:
        raise _credentials_error("User not found")
    return user


OptionalUserDep = Annotated[Profile | None, Depends(get_optional_user)]


def get_current_user(user: OptionalUserDep) -> Profile:
    """Return the authenticated profile.

    Raises:
        HTTPException: If the request is anonymous
    """
    if user is None:
        raise _credentials_error("Not authenticated")
    return user


# Type alias for current user dependency
CurrentUserDep = Annotated[Profile, Depends(get_current_user)]
