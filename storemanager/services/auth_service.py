"""
Authentication service for store owners.

Handles account creation and email/password verification. The signed-in
user's id is the owner id every other service is scoped by.
"""
import logging
import re
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from storemanager.models import AppUser
from storemanager.exceptions import BusinessLogicError, UnauthorizedError, ValidationError

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')


def is_valid_email(email: str) -> bool:
    """Validate email format."""
    return EMAIL_PATTERN.match(email or '') is not None


def find_user_by_email(session: Session, email: str) -> Optional[AppUser]:
    return session.query(AppUser).filter(
        func.lower(AppUser.email) == (email or '').strip().lower()
    ).first()


def register_user(session: Session, email: str, password: str, full_name: Optional[str] = None) -> AppUser:
    """
    Create a new owner account.

    Raises:
        ValidationError: invalid email or short password
        BusinessLogicError: email already registered
    """
    email = (email or '').strip().lower()
    full_name = (full_name or '').strip() or None

    errors = []
    if not is_valid_email(email):
        errors.append('Invalid email address.')
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f'Password must be at least {MIN_PASSWORD_LENGTH} characters.')
    if errors:
        raise ValidationError(' '.join(errors), errors=errors)

    if find_user_by_email(session, email):
        raise BusinessLogicError('This email is already registered. Sign in instead.')

    try:
        user = AppUser(email=email, full_name=full_name, active=True)
        user.set_password(password)
        session.add(user)
        session.commit()
    except IntegrityError as e:
        session.rollback()
        logger.warning(f"Duplicate registration for {email}: {e}")
        raise BusinessLogicError('This email is already registered. Sign in instead.')
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Unexpected error registering {email}: {e}", exc_info=True)
        raise BusinessLogicError('The account could not be created. Please try again.')

    logger.info(f"User registered: id={user.id}, email={email}")
    return user


def authenticate(session: Session, email: str, password: str) -> AppUser:
    """Return the active user matching the credentials or raise UnauthorizedError."""
    if not email or not password:
        raise BusinessLogicError('Email and password are required.')

    user = find_user_by_email(session, email)
    if not user or not user.active or not user.check_password(password):
        logger.info(f"Failed login attempt for {email}")
        raise UnauthorizedError('Invalid email or password.')
    return user


def get_active_user(session: Session, user_id: int) -> Optional[AppUser]:
    return session.query(AppUser).filter_by(id=user_id, active=True).first()
