"""Record of an alert already delivered to a user about one of their requests."""
from __future__ import annotations

import enum
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, String, UniqueConstraint, event
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from sentalerts.utils.errors import InvalidAlertType

from .base import Base

if TYPE_CHECKING:
    from .info_request import InfoRequest
    from .user import User


class AlertType(str, enum.Enum):
    """Alerts a user can be sent about an information request."""

    # Tell the user that their info request has become overdue.
    OVERDUE_1 = "overdue_1"

    @classmethod
    def parse(cls, value: object) -> "AlertType":
        """Return the member for ``value`` or raise :class:`InvalidAlertType`."""

        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value)
            except ValueError:
                pass
        raise InvalidAlertType(value, allowed=[member.value for member in cls])


_ALLOWED_SQL = ", ".join(f"'{member.value}'" for member in AlertType)


class UserInfoRequestSentAlert(Base):
    """Whether an alert of a given type has been sent to a user for an info request."""

    __tablename__ = "user_info_request_sent_alerts"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "info_request_id", "alert_type", name="uq_sent_alert_user_request_type"
        ),
        CheckConstraint(f"alert_type IN ({_ALLOWED_SQL})", name="ck_sent_alert_alert_type"),
    )

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    info_request_id: Mapped[int] = mapped_column(
        ForeignKey("info_requests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    alert_type: Mapped[str] = mapped_column(String(32), nullable=False)

    user: Mapped[User] = relationship(back_populates="sent_alerts")
    info_request: Mapped[InfoRequest] = relationship(back_populates="sent_alerts")

    @validates("alert_type")
    def _validate_alert_type(self, key: str, value: object) -> str:
        return AlertType.parse(value).value

    def __repr__(self) -> str:
        return (
            f"UserInfoRequestSentAlert(id={self.id}, user_id={self.user_id}, "
            f"info_request_id={self.info_request_id}, alert_type={self.alert_type!r})"
        )


@event.listens_for(UserInfoRequestSentAlert, "before_insert")
@event.listens_for(UserInfoRequestSentAlert, "before_update")
def _check_alert_type_before_write(mapper, connection, target: UserInfoRequestSentAlert) -> None:
    """Reject rows whose alert type was never set (``@validates`` only sees assignments)."""

    target.alert_type = AlertType.parse(target.alert_type).value
