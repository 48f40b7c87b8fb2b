"""
SQLAlchemy ORM models for database tables.

This module contains database table definitions using SQLAlchemy.
For Pydantic request/response schemas, see schemas.py.
"""

import uuid

from sqlalchemy import Column, DateTime, String, Text

from chatboard.storage import Base


def new_id() -> str:
    return uuid.uuid4().hex


class Message(Base):
    """
    A chat message.

    Table: messages
    `type` separates the global board from direct messages; only
    global messages are listed by the board.
    """
    __tablename__ = "messages"

    id = Column(String, primary_key=True, default=new_id)
    msg = Column(Text, nullable=False)
    msg_from = Column(String, nullable=False, index=True)
    msg_date_time = Column(DateTime, nullable=False, index=True)  # naive UTC
    type = Column(String, nullable=False, default="global", index=True)


class User(Base):
    """
    A registered account.

    Table: users
    Only the passlib hash of the password is stored.
    """
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=new_id)
    username = Column(String, nullable=False, unique=True, index=True)
    password = Column(String, nullable=False)
    date_joined = Column(DateTime, nullable=False)  # naive UTC
