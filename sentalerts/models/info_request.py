"""Information request model."""
from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import Date, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .sent_alert import UserInfoRequestSentAlert
    from .user import User

# The authority still owes the requester a response.
WAITING_RESPONSE = "waiting_response"


class InfoRequest(Base):
    """A request for information made by a user to a public authority."""

    __tablename__ = "info_requests"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    url_title: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    described_state: Mapped[str] = mapped_column(String(64), nullable=False, default=WAITING_RESPONSE)
    date_response_required_by: Mapped[date | None] = mapped_column(Date, nullable=True, index=True)

    user: Mapped[User] = relationship(back_populates="info_requests")
    sent_alerts: Mapped[list[UserInfoRequestSentAlert]] = relationship(
        back_populates="info_request", cascade="all, delete-orphan", passive_deletes=True
    )

    def is_overdue(self, today: date) -> bool:
        """Return whether the response deadline passed while still awaiting a reply."""

        if self.described_state != WAITING_RESPONSE or self.date_response_required_by is None:
            return False
        return self.date_response_required_by < today
