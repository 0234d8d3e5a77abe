from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import Optional

from templebook.models import User
from templebook.enums import Role
from templebook.auth.schemas import UserCreate
from templebook.auth.utils import get_password_hash, verify_password

class UserService:
    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        """Get user by email"""
        return db.query(User).filter(User.email == email).first()

    @staticmethod
    def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
        """Get user by ID"""
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def create_user(db: Session, user: UserCreate) -> User:
        """Create a new USER or TEMPLE_BOARD account"""
        if user.role == Role.SUPERUSER:
            raise ValueError("Superuser accounts cannot be self-registered")

        db_user = User(
            name=user.name,
            email=user.email,
            phone=user.phone,
            password=get_password_hash(user.password),
            role=user.role.value,
            # Temple board accounts wait for superuser approval
            is_approved=user.role == Role.USER,
        )

        try:
            db.add(db_user)
            db.commit()
            db.refresh(db_user)
            return db_user
        except IntegrityError:
            db.rollback()
            raise ValueError("Email already registered")

    @staticmethod
    def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
        """Authenticate user with email and password"""
        user = UserService.get_user_by_email(db, email)
        if not user:
            return None
        if not verify_password(password, user.password):
            return None
        return user
