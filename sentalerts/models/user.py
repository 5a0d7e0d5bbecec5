"""User model."""
from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .info_request import InfoRequest
    from .sent_alert import UserInfoRequestSentAlert


class User(Base):
    """A person who files information requests and receives alerts about them."""

    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    info_requests: Mapped[list[InfoRequest]] = relationship(
        back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    sent_alerts: Mapped[list[UserInfoRequestSentAlert]] = relationship(
        back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
