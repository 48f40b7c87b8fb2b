import logging
from typing import Any, Dict, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from chatboard.models import User
from chatboard.schemas import NewUser, SafeUser, ServiceError, UserCredentials, as_utc
from chatboard.security import dummy_verify, hash_password, verify_password

logger = logging.getLogger(__name__)

UserResponse = Union[SafeUser, ServiceError]


def _find(db: Session, username: str):
    return db.query(User).filter(User.username == username).first()


def save_user(db: Session, user: NewUser) -> UserResponse:
    """
    Create a new account.

    Args:
        db: Database session
        user: Credentials plus server-side join date

    Returns:
        The created user, or a ServiceError if the username is taken or
        the store rejected the write
    """
    logger.info(f"Creating user: {user.username}")

    try:
        record = User(
            username=user.username,
            password=hash_password(user.password),
            date_joined=as_utc(user.date_joined).replace(tzinfo=None),
        )
        db.add(record)
        db.commit()
        db.refresh(record)
        logger.info(f"User created: {user.username}")
        return SafeUser.model_validate(record)

    except IntegrityError:
        db.rollback()
        logger.info(f"Duplicate username rejected: {user.username}")
        return ServiceError(error=f"Username {user.username} already exists")

    except Exception as e:
        db.rollback()
        logger.error(f"Failed to create user {user.username}: {e}")
        return ServiceError(error="Error occured while saving user")


def login_user(db: Session, credentials: UserCredentials) -> UserResponse:
    """
    Check credentials against the stored password hash.

    Unknown usernames and wrong passwords produce the same error.
    """
    try:
        record = _find(db, credentials.username)
    except Exception as e:
        logger.error(f"Failed to look up user {credentials.username}: {e}")
        return ServiceError(error="Error occured while authenticating user")

    if record is None:
        # Unknown users still pay for a hash check so timing matches a wrong password
        dummy_verify()
        logger.info(f"Login rejected for {credentials.username}")
        return ServiceError(error="Invalid username or password")

    if not verify_password(credentials.password, record.password):
        logger.info(f"Login rejected for {credentials.username}")
        return ServiceError(error="Invalid username or password")

    return SafeUser.model_validate(record)


def get_user_by_username(db: Session, username: str) -> UserResponse:
    try:
        record = _find(db, username)
    except Exception as e:
        logger.error(f"Failed to look up user {username}: {e}")
        return ServiceError(error="Error occured while finding user")

    if record is None:
        return ServiceError(error="User not found")
    return SafeUser.model_validate(record)


def delete_user_by_username(db: Session, username: str) -> UserResponse:
    """
    Delete an account.

    Returns:
        The user as it was before deletion, or a ServiceError
    """
    logger.info(f"Deleting user: {username}")

    try:
        record = _find(db, username)
        if record is None:
            return ServiceError(error="User not found")
        deleted = SafeUser.model_validate(record)
        db.delete(record)
        db.commit()
        logger.info(f"User deleted: {username}")
        return deleted

    except Exception as e:
        db.rollback()
        logger.error(f"Failed to delete user {username}: {e}")
        return ServiceError(error="Error occured while deleting user")


def update_user(db: Session, username: str, updates: Dict[str, Any]) -> UserResponse:
    """
    Apply field updates to an account.

    Args:
        db: Database session
        username: Account to update
        updates: Column values to set; a password is hashed before storing

    Returns:
        The updated user, or a ServiceError
    """
    logger.info(f"Updating user {username}: fields={sorted(updates)}")

    try:
        record = _find(db, username)
        if record is None:
            return ServiceError(error="User not found")

        for field, value in updates.items():
            if field == "password":
                value = hash_password(value)
            setattr(record, field, value)

        db.commit()
        db.refresh(record)
        return SafeUser.model_validate(record)

    except Exception as e:
        db.rollback()
        logger.error(f"Failed to update user {username}: {e}")
        return ServiceError(error="Error occured while updating user")
