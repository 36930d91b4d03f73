"""
Authentication router: registration, login, current user.
Passwords are hashed with passlib[bcrypt]; tokens are JWTs via python-jose.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from sweetshop import models
from sweetshop.database import get_db
from sweetshop.dependencies import get_current_user
from sweetshop.schemas import AuthResponse, UserLogin, UserRegister, UserResponse
from sweetshop.services import auth_service

router = APIRouter(prefix="/auth", tags=["authentication"])


def _auth_response(result: auth_service.AuthResult) -> AuthResponse:
    return AuthResponse(user=UserResponse.model_validate(result.user), token=result.token)


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(payload: UserRegister, db: Session = Depends(get_db)):
    """Create an account and return it with a fresh token"""
    result = auth_service.register(db, payload.username, payload.password, payload.is_admin)
    return _auth_response(result)


@router.post("/login", response_model=AuthResponse)
def login(payload: UserLogin, db: Session = Depends(get_db)):
    """
    Exchange credentials for a token.
    Unknown username and wrong password produce the same 401.
    """
    result = auth_service.login(db, payload.username, payload.password)
    return _auth_response(result)


@router.get("/me", response_model=UserResponse)
def read_users_me(current_user: models.User = Depends(get_current_user)):
    return current_user
