"""Schedule expression parsing and policy resolution.

A schedule expression resolves to one of two policies:

* :class:`FixedPeriod` -- ``"@every D"`` with ``D`` under one minute. Cron
  fields have minute granularity, so these run on a dedicated ticker.
* :class:`CronRules` -- everything else: 5-field crontab expressions,
  descriptors such as ``@hourly``, and ``"@every D"`` for ``D`` of one
  minute or more. These run on the shared APScheduler evaluator.

:func:`resolve_schedule` is pure; it validates the expression eagerly by
building the trigger once, so a bad expression fails at registration time
with :class:`~cachedclient.exceptions.ScheduleError`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Optional, Union

from apscheduler.triggers.base import BaseTrigger
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from cachedclient.exceptions import ScheduleError

EVERY_PREFIX = "@every "
TICKER_THRESHOLD = timedelta(minutes=1)

DESCRIPTORS: dict[str, str] = {
    "@yearly": "0 0 1 1 *",
    "@annually": "0 0 1 1 *",
    "@monthly": "0 0 1 * *",
    "@weekly": "0 0 * * sun",
    "@daily": "0 0 * * *",
    "@midnight": "0 0 * * *",
    "@hourly": "0 * * * *",
}

_UNIT_SECONDS: dict[str, float] = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")

# Crontab weekday numbering, Sunday first. 7 is accepted as Sunday.
_WEEKDAY_NAMES = ("sun", "mon", "tue", "wed", "thu", "fri", "sat")


@dataclass(frozen=True)
class FixedPeriod:
    """Run every ``period``, on a ticker owned by the key."""

    period: timedelta


@dataclass(frozen=True)
class CronRules:
    """Run at the instants described by ``expression``."""

    expression: str


SchedulePolicy = Union[FixedPeriod, CronRules]


def parse_duration(text: str) -> timedelta:
    """Parse a compact duration string such as ``"1h30m"`` or ``"250ms"``.

    A leading sign is accepted; ``"0"`` is accepted without a unit.

    Raises:
        ScheduleError: If *text* is not a valid duration.
    """
    raw = text.strip()
    if not raw:
        raise ScheduleError(f"invalid duration: {text!r}")

    sign = 1.0
    if raw[0] in "+-":
        sign = -1.0 if raw[0] == "-" else 1.0
        raw = raw[1:]
    if not raw:
        raise ScheduleError(f"invalid duration: {text!r}")
    if raw == "0":
        return timedelta(0)

    total = 0.0
    pos = 0
    while pos < len(raw):
        match = _DURATION_PART.match(raw, pos)
        if match is None:
            raise ScheduleError(f"invalid duration: {text!r}")
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()
    return timedelta(seconds=sign * total)


def _every_duration(expression: str) -> Optional[timedelta]:
    if not expression.startswith(EVERY_PREFIX):
        return None
    duration = parse_duration(expression[len(EVERY_PREFIX):])
    if duration <= timedelta(0):
        raise ScheduleError(f"non-positive interval in {expression!r}")
    return duration


def _weekday_number(token: str) -> int:
    token = token.strip().lower()
    if token in _WEEKDAY_NAMES:
        return _WEEKDAY_NAMES.index(token)
    if token.isdigit() and int(token) <= 7:
        return int(token)
    raise ValueError(f"invalid day of week {token!r}")


def _crontab_weekdays(field: str) -> str:
    """Rewrite a crontab day-of-week field as weekday names.

    APScheduler numbers weekdays from Monday; crontab numbers them from
    Sunday. Lists, ranges and steps are expanded to an explicit list of
    names so both read the same days.
    """
    if field in ("*", "?"):
        return "*"
    days: set[int] = set()
    for part in field.split(","):
        base, sep, step_text = part.partition("/")
        step = 1
        if sep:
            if not step_text.isdigit() or int(step_text) == 0:
                raise ValueError(f"invalid step in day of week {part!r}")
            step = int(step_text)
        if base in ("*", "?"):
            start, end = 0, 6
        elif "-" in base:
            first, _, last = base.partition("-")
            start, end = _weekday_number(first), _weekday_number(last)
        else:
            start = _weekday_number(base)
            end = 6 if sep else start
        if start > end:
            raise ValueError(f"invalid day of week range {part!r}")
        days.update(day % 7 for day in range(start, end + 1, step))
    return ",".join(_WEEKDAY_NAMES[day] for day in sorted(days))


def build_trigger(rules: CronRules, timezone: Any = None) -> BaseTrigger:
    """Build the APScheduler trigger for *rules*.

    Args:
        rules: A resolved cron policy.
        timezone: Optional timezone (name or tzinfo); local time when ``None``.

    Raises:
        ScheduleError: If the expression is not a valid crontab.
    """
    expression = rules.expression.strip()
    every = _every_duration(expression)
    crontab = DESCRIPTORS.get(expression, expression)
    try:
        if every is not None:
            return IntervalTrigger(seconds=every.total_seconds(), timezone=timezone)
        fields = crontab.split()
        if len(fields) == 5:
            fields[4] = _crontab_weekdays(fields[4])
        return CronTrigger.from_crontab(" ".join(fields), timezone=timezone)
    except (ValueError, TypeError, LookupError) as exc:
        raise ScheduleError(f"invalid cron spec {rules.expression!r}: {exc}") from exc


def resolve_schedule(expression: str, timezone: Any = None) -> SchedulePolicy:
    """Resolve a schedule expression into a policy.

    Examples::

        resolve_schedule("@every 50ms")   # FixedPeriod(timedelta(milliseconds=50))
        resolve_schedule("@every 5m")     # CronRules("@every 5m")
        resolve_schedule("*/5 * * * *")   # CronRules("*/5 * * * *")

    Raises:
        ScheduleError: If the expression cannot be parsed.
    """
    expression = expression.strip()
    if not expression:
        raise ScheduleError("empty schedule expression")

    every = _every_duration(expression)
    if every is not None and every < TICKER_THRESHOLD:
        return FixedPeriod(every)

    rules = CronRules(expression)
    build_trigger(rules, timezone=timezone)
    return rules
