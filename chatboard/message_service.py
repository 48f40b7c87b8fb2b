import logging
from datetime import datetime, timezone
from typing import List, Union

from sqlalchemy.orm import Session

from chatboard.models import Message
from chatboard.schemas import MessageIn, ServiceError, StoredMessage

logger = logging.getLogger(__name__)

SAVE_MESSAGE_ERROR = "Error occured while saving message"


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def save_message(db: Session, message: MessageIn) -> Union[StoredMessage, ServiceError]:
    """
    Save a new message to the database.

    Args:
        db: Database session
        message: Validated message to store

    Returns:
        The stored message including its assigned id, or a ServiceError
        if the store rejected the write. Never raises.
    """
    logger.info(f"Saving message from={message.msg_from}, type={message.type}")

    try:
        record = Message(
            msg=message.msg,
            msg_from=message.msg_from,
            msg_date_time=_to_naive_utc(message.msg_date_time),
            type=message.type,
        )
        db.add(record)
        db.commit()
        db.refresh(record)
        logger.info(f"Message saved: {record.id}")
        return StoredMessage.model_validate(record)

    except Exception as e:
        db.rollback()
        logger.error(f"Failed to save message from {message.msg_from}: {e}")
        return ServiceError(error=SAVE_MESSAGE_ERROR)


def get_messages(db: Session) -> List[StoredMessage]:
    """
    Retrieve all global messages, oldest first.

    Args:
        db: Database session

    Returns:
        Global messages sorted by msgDateTime ascending. A store failure
        yields an empty list, so callers cannot tell it apart from an
        empty board; the failure is logged at error level.
    """
    try:
        records = (
            db.query(Message)
            .filter(Message.type == "global")
            .order_by(Message.msg_date_time.asc())
            .all()
        )
    except Exception as e:
        logger.error(f"Failed to load global messages, returning none: {e}")
        return []

    logger.info(f"Retrieved {len(records)} global messages")
    return [StoredMessage.model_validate(record) for record in records]
