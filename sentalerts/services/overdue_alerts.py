"""Send the "request is overdue" alert once per user and request."""
from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date

from sqlalchemy import exists, select
from sqlalchemy.orm import Session, contains_eager

from sentalerts import db as database
from sentalerts.core.runtime_state import record_overdue_run
from sentalerts.models.info_request import WAITING_RESPONSE, InfoRequest
from sentalerts.models.sent_alert import AlertType, UserInfoRequestSentAlert
from sentalerts.models.user import User
from sentalerts.services.sent_alerts import mark_sent
from sentalerts.utils.time import utcnow, utctoday

logger = logging.getLogger(__name__)

# Delivers one alert. Raising means "not delivered": no marker is written.
AlertSender = Callable[[User, InfoRequest, AlertType], None]


def log_alert_sender(user: User, info_request: InfoRequest, alert_type: AlertType) -> None:
    """Default sender; the actual mail transport lives outside this service."""

    logger.info(
        "Overdue alert dispatched",
        extra={
            "user_id": user.id,
            "info_request_id": info_request.id,
            "url_title": info_request.url_title,
            "alert_type": alert_type.value,
        },
    )


def find_overdue_requests(db: Session, *, today: date) -> list[InfoRequest]:
    """Return overdue requests whose owner has not been sent the overdue alert yet."""

    already_sent = exists().where(
        UserInfoRequestSentAlert.user_id == InfoRequest.user_id,
        UserInfoRequestSentAlert.info_request_id == InfoRequest.id,
        UserInfoRequestSentAlert.alert_type == AlertType.OVERDUE_1.value,
    )
    stmt = (
        select(InfoRequest)
        .join(InfoRequest.user)
        .options(contains_eager(InfoRequest.user))
        .where(
            InfoRequest.described_state == WAITING_RESPONSE,
            InfoRequest.date_response_required_by.is_not(None),
            InfoRequest.date_response_required_by < today,
            User.is_active.is_(True),
            ~already_sent,
        )
        .order_by(InfoRequest.id)
    )
    return list(db.scalars(stmt).all())


def alert_overdue_requests(
    db: Session,
    *,
    today: date | None = None,
    sender: AlertSender | None = None,
) -> list[UserInfoRequestSentAlert]:
    """Send the overdue alert for every pending overdue request and record each send."""

    today = today or utctoday()
    sender = sender or log_alert_sender
    recorded: list[UserInfoRequestSentAlert] = []

    for info_request in find_overdue_requests(db, today=today):
        user = info_request.user
        try:
            sender(user, info_request, AlertType.OVERDUE_1)
        except Exception:  # noqa: BLE001
            logger.exception(
                "Overdue alert delivery failed; will retry on next run",
                extra={"user_id": user.id, "info_request_id": info_request.id},
            )
            continue

        record, created = mark_sent(
            db, user_id=user.id, info_request_id=info_request.id, alert_type=AlertType.OVERDUE_1
        )
        if created:
            recorded.append(record)
        else:
            logger.warning(
                "Overdue alert was recorded concurrently by another runner",
                extra={"user_id": user.id, "info_request_id": info_request.id},
            )

    logger.info("Overdue alert run finished", extra={"sent": len(recorded), "today": today.isoformat()})
    return recorded


def alert_overdue_requests_once() -> None:
    """Scheduler entry point: run one pass in a dedicated session."""

    session = database.get_sessionmaker()()
    try:
        recorded = alert_overdue_requests(session)
    except Exception:
        record_overdue_run(finished_at=utcnow(), sent=0, ok=False)
        raise
    finally:
        session.close()
    record_overdue_run(finished_at=utcnow(), sent=len(recorded), ok=True)


__all__ = [
    "AlertSender",
    "alert_overdue_requests",
    "alert_overdue_requests_once",
    "find_overdue_requests",
    "log_alert_sender",
]
