"""
Request guards, applied per route with Depends():
- get_current_user: bearer token -> live User record
- require_admin: get_current_user plus the admin flag
The resolved user is handed to the route as an argument.
"""
import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from sweetshop.crud import crud_user
from sweetshop.database import get_db
from sweetshop.exceptions import AuthorizationError, MissingTokenError, UnknownIdentityError
from sweetshop.models import User
from sweetshop.services import auth_service

logger = logging.getLogger(__name__)

# auto_error=False so a missing header is reported as 401 by our own handler
bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    if credentials is None or not credentials.credentials:
        raise MissingTokenError()

    user_id = auth_service.verify(credentials.credentials)

    user = crud_user.get(db, user_id)
    if user is None:
        logger.warning(f"Token subject no longer exists: user {user_id}")
        raise UnknownIdentityError()
    return user


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_admin:
        logger.warning(f"Non-admin user attempted admin action: {current_user.username}")
        raise AuthorizationError()
    return current_user
