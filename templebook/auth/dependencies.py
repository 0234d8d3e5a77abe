from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from templebook.config import settings
from templebook.database import get_db
from templebook.auth.utils import verify_token
from templebook.auth.service import UserService
from templebook.auth.principal import Principal

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login")

def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)):
    """Get current authenticated user"""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    # Verify token and get payload
    token_data = verify_token(token, credentials_exception)

    # Get user from database
    user = UserService.get_user_by_id(db, user_id=token_data["user_id"])
    if user is None:
        raise credentials_exception

    return user

def get_current_principal(current_user = Depends(get_current_user)) -> Principal:
    """Role and approval of the caller, as read from the database on this request"""
    return Principal.from_user(current_user)
