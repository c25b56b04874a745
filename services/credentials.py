from __future__ import annotations

import logging
from typing import Optional

import bcrypt
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from errors import Unavailable, ValidationFailed
from models import Role, User


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=10)).decode()


def check_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode(), password_hash.encode())
    except ValueError:
        # malformed stored hash
        return False


class CredentialStore:
    """Data access over user records for the auth layer."""

    def __init__(self, db: Session, logger: logging.Logger):
        self.db = db
        self.log = logger

    def get_by_email(self, email: str) -> Optional[User]:
        try:
            return self.db.scalars(
                select(User).where(func.lower(User.email) == email.strip().lower())
            ).first()
        except SQLAlchemyError as e:
            raise Unavailable(f"db_error: {type(e).__name__}") from e

    def get_by_id(self, user_id: int) -> Optional[User]:
        try:
            return self.db.get(User, user_id)
        except SQLAlchemyError as e:
            raise Unavailable(f"db_error: {type(e).__name__}") from e

    def verify_password(self, user: User, password: str) -> bool:
        return check_password(password, user.password_hash)

    def register(self, name: str, email: str, password: str, role: Role = Role.USER) -> User:
        if not (name and name.strip()) or not (email and email.strip()) or not password:
            raise ValidationFailed("Please add all fields")
        email = email.strip().lower()
        if self.get_by_email(email) is not None:
            raise ValidationFailed("User already exists")

        # email verification is disabled: accounts are verified on creation
        user = User(
            name=name.strip(),
            email=email,
            password_hash=hash_password(password),
            role=role,
            email_verified=True,
        )
        try:
            self.db.add(user)
            self.db.commit()
            self.db.refresh(user)
        except IntegrityError as e:
            self.db.rollback()
            raise ValidationFailed("User already exists") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise Unavailable(f"db_error: {type(e).__name__}") from e

        self.log.info("User registered: %s", user.email)
        return user

    def authenticate(self, email: str, password: str) -> User:
        if not email or not password:
            raise ValidationFailed("Please enter email and password")
        user = self.get_by_email(email)
        if user is None:
            self.log.info("Login failed: no user for %s", email)
            raise ValidationFailed("Invalid credentials")
        if not self.verify_password(user, password):
            self.log.info("Login failed: bad password for %s", user.email)
            raise ValidationFailed("Invalid credentials")
        self.log.info("User logged in: %s (role: %s)", user.email, user.role.value)
        return user
