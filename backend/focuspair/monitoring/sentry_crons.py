from __future__ import annotations

from typing import Any, Callable, TypeVar, cast

from sentry_sdk.crons import monitor as _monitor

from ..core.config import settings

_DEFAULT_MONITOR_LIMITS: dict[str, int] = {
    "checkin_margin": 2,  # minutes
    "max_runtime": 5,  # minutes
    "failure_issue_threshold": 3,
    "recovery_threshold": 1,
}


def _interval_minutes(seconds: int) -> int:
    return max(1, seconds // 60)


CRITICAL_BEAT_MONITOR_CONFIGS: dict[str, dict[str, Any]] = {
    "reconcile-matches": {
        "schedule": {
            "type": "interval",
            "value": _interval_minutes(settings.match_sweep_interval_seconds),
            "unit": "minute",
        },
        **_DEFAULT_MONITOR_LIMITS,
    },
    "sweep-no-shows": {
        "schedule": {
            "type": "interval",
            "value": _interval_minutes(settings.no_show_sweep_interval_seconds),
            "unit": "minute",
        },
        **_DEFAULT_MONITOR_LIMITS,
    },
    "send-session-reminders": {
        "schedule": {
            "type": "interval",
            "value": _interval_minutes(settings.reminder_sweep_interval_seconds),
            "unit": "minute",
        },
        **_DEFAULT_MONITOR_LIMITS,
    },
    "sweep-orphaned-sessions": {
        "schedule": {
            "type": "interval",
            "value": _interval_minutes(settings.orphan_sweep_interval_seconds),
            "unit": "minute",
        },
        **_DEFAULT_MONITOR_LIMITS,
    },
}

CRITICAL_BEAT_MONITOR_SLUGS: tuple[str, ...] = tuple(CRITICAL_BEAT_MONITOR_CONFIGS.keys())
CRITICAL_BEAT_MONITOR_EXCLUDES: tuple[str, ...] = tuple(
    f"^{slug}$" for slug in CRITICAL_BEAT_MONITOR_SLUGS
)

F = TypeVar("F", bound=Callable[..., Any])


def monitor_if_configured(slug: str) -> Callable[[F], F]:
    monitor_config = CRITICAL_BEAT_MONITOR_CONFIGS.get(slug)
    if monitor_config is None or not settings.sentry_dsn:

        def decorator(func: F) -> F:
            return func

        return decorator
    return cast(Callable[[F], F], _monitor(monitor_slug=slug, monitor_config=monitor_config))
