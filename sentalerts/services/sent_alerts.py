"""Create and look up sent-alert markers."""
import logging

from sqlalchemy import exists, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from sentalerts.models.sent_alert import AlertType, UserInfoRequestSentAlert
from sentalerts.utils.errors import DuplicateSentAlert, InvalidAlertType

logger = logging.getLogger(__name__)


def _key_filter(user_id: int, info_request_id: int, alert_type: AlertType):
    return (
        UserInfoRequestSentAlert.user_id == user_id,
        UserInfoRequestSentAlert.info_request_id == info_request_id,
        UserInfoRequestSentAlert.alert_type == alert_type.value,
    )


def get_sent_alert(
    db: Session, *, user_id: int, info_request_id: int, alert_type: AlertType | str
) -> UserInfoRequestSentAlert | None:
    """Return the marker for this user, request and alert type if one was recorded.

    An unrecognised alert type can never have been recorded, so it finds nothing.
    """

    try:
        parsed = AlertType.parse(alert_type)
    except InvalidAlertType:
        return None
    stmt = select(UserInfoRequestSentAlert).where(*_key_filter(user_id, info_request_id, parsed)).limit(1)
    return db.scalars(stmt).first()


def sent_alert_exists(db: Session, *, user_id: int, info_request_id: int, alert_type: AlertType | str) -> bool:
    """Return whether the alert was already sent. Read-only guard used before sending."""

    try:
        parsed = AlertType.parse(alert_type)
    except InvalidAlertType:
        return False
    stmt = select(exists().where(*_key_filter(user_id, info_request_id, parsed)))
    return bool(db.scalar(stmt))


def create_sent_alert(
    db: Session, *, user_id: int, info_request_id: int, alert_type: AlertType | str
) -> UserInfoRequestSentAlert:
    """Persist a marker recording that ``alert_type`` was sent to the user for the request.

    Raises :class:`~sentalerts.utils.errors.InvalidAlertType` for unknown alert
    types (nothing is written) and :class:`~sentalerts.utils.errors.DuplicateSentAlert`
    when the marker already exists.
    """

    parsed = AlertType.parse(alert_type)
    record = UserInfoRequestSentAlert(user_id=user_id, info_request_id=info_request_id, alert_type=parsed)
    try:
        with db.begin_nested():
            db.add(record)
    except IntegrityError as exc:
        if not sent_alert_exists(db, user_id=user_id, info_request_id=info_request_id, alert_type=parsed):
            # Foreign key or other storage failure, not a duplicate.
            raise
        raise DuplicateSentAlert(
            user_id=user_id, info_request_id=info_request_id, alert_type=parsed.value
        ) from exc
    db.commit()
    db.refresh(record)
    logger.info(
        "Sent alert recorded",
        extra={
            "sent_alert_id": record.id,
            "user_id": user_id,
            "info_request_id": info_request_id,
            "alert_type": parsed.value,
        },
    )
    return record


def mark_sent(
    db: Session, *, user_id: int, info_request_id: int, alert_type: AlertType | str
) -> tuple[UserInfoRequestSentAlert, bool]:
    """Get or create the marker; returns ``(record, created)``.

    A concurrent notifier that loses the insert race gets the winner's row back.
    """

    existing = get_sent_alert(db, user_id=user_id, info_request_id=info_request_id, alert_type=alert_type)
    if existing is not None:
        return existing, False
    try:
        record = create_sent_alert(db, user_id=user_id, info_request_id=info_request_id, alert_type=alert_type)
    except DuplicateSentAlert:
        existing = get_sent_alert(db, user_id=user_id, info_request_id=info_request_id, alert_type=alert_type)
        if existing is None:
            # The winning row vanished again (deleted by cascade in between).
            raise
        return existing, False
    return record, True


def list_sent_alerts(
    db: Session,
    *,
    user_id: int | None = None,
    info_request_id: int | None = None,
    alert_type: AlertType | str | None = None,
) -> list[UserInfoRequestSentAlert]:
    """Return recorded markers matching every given filter, oldest first."""

    stmt = select(UserInfoRequestSentAlert)
    if alert_type is not None:
        try:
            parsed = AlertType.parse(alert_type)
        except InvalidAlertType:
            return []
        stmt = stmt.where(UserInfoRequestSentAlert.alert_type == parsed.value)
    if user_id is not None:
        stmt = stmt.where(UserInfoRequestSentAlert.user_id == user_id)
    if info_request_id is not None:
        stmt = stmt.where(UserInfoRequestSentAlert.info_request_id == info_request_id)
    return list(db.scalars(stmt.order_by(UserInfoRequestSentAlert.id)).all())


__all__ = [
    "create_sent_alert",
    "get_sent_alert",
    "list_sent_alerts",
    "mark_sent",
    "sent_alert_exists",
]
