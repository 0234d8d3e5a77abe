from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from datetime import timedelta
from templebook.database import get_db
from templebook.auth.schemas import UserCreate, User, LoginRequest, AuthResponse
from templebook.auth.service import UserService
from templebook.auth.utils import create_access_token
from templebook.auth.dependencies import get_current_user
from templebook.config import settings
from templebook.logging_config import get_logger

router = APIRouter()
logger = get_logger()

@router.post("/register", response_model=User, status_code=status.HTTP_201_CREATED)
def register_user(user: UserCreate, db: Session = Depends(get_db)):
    """Register a new visitor or temple board account"""
    try:
        db_user = UserService.create_user(db=db, user=user)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    logger.info(f"User registered | id={db_user.id} | role={db_user.role}")
    return db_user

@router.post("/login", response_model=AuthResponse)
def login(login_data: LoginRequest, db: Session = Depends(get_db)):
    """Exchange email and password for a bearer token"""
    user = UserService.authenticate_user(db, login_data.email, login_data.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = create_access_token(
        data={"sub": str(user.id), "role": user.role}, expires_delta=access_token_expires
    )
    return AuthResponse(
        access_token=access_token,
        token_type="bearer",
        user=user
    )

@router.get("/me", response_model=User)
def read_users_me(current_user = Depends(get_current_user)):
    """Get current user profile"""
    return current_user
