"""Process-wide runtime flags shared between the scheduler and /health."""
from __future__ import annotations

from datetime import datetime
from typing import Any

_scheduler_active = False
_last_overdue_run: dict[str, Any] | None = None


def set_scheduler_active(active: bool) -> None:
    global _scheduler_active
    _scheduler_active = active


def is_scheduler_active() -> bool:
    return _scheduler_active


def record_overdue_run(*, finished_at: datetime, sent: int, ok: bool) -> None:
    global _last_overdue_run
    _last_overdue_run = {"finished_at": finished_at.isoformat(), "sent": sent, "ok": ok}


def last_overdue_run() -> dict[str, Any] | None:
    return dict(_last_overdue_run) if _last_overdue_run is not None else None


def reset_runtime_state() -> None:
    global _scheduler_active, _last_overdue_run
    _scheduler_active = False
    _last_overdue_run = None
