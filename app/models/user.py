"""
User model for authentication and todo ownership.

Architecture:
    User → Todo → embedded SubTodos

Users are created at registration and never updated or deleted by the API.
Todos point back at their author; the user row does not own them.
"""

from sqlalchemy import Column, Index, String

from app.models.base import Base, TimestampMixin, UUIDMixin


class User(Base, UUIDMixin, TimestampMixin):
    """Registered account able to authenticate and own todos."""

    __tablename__ = "users"
    __table_args__ = (Index("ix_users_email", "email", unique=True),)

    first_name = Column(String(100), nullable=True, comment="Given name")
    last_name = Column(String(100), nullable=True, comment="Family name")

    email = Column(
        String(255),
        nullable=False,
        comment="Unique, lower-cased email used to log in",
    )

    hashed_password = Column(
        String(255),
        nullable=False,
        comment="Bcrypt hashed password for secure authentication",
    )

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}')>"
