import re
from datetime import UTC, datetime, timedelta

DURATION_RE = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")
DURATION_UNITS = {"ms": 0.001, "s": 1, "m": 60, "h": 3600}


def now() -> datetime:
    return datetime.now(UTC)


def parse_duration(value: str) -> timedelta:
    """Parse a Go-style duration (``15m``, ``1h30m``, ``500ms``) or plain seconds.

    Raises:
        ValueError: If the value is not a valid duration
    """
    value = value.strip()
    if value.isdigit():
        return timedelta(seconds=int(value))

    pos = 0
    seconds = 0.0
    for match in DURATION_RE.finditer(value):
        if match.start() != pos:
            break
        seconds += float(match.group(1)) * DURATION_UNITS[match.group(2)]
        pos = match.end()

    if pos == 0 or pos != len(value):
        raise ValueError(f"Invalid duration: '{value}'")
    return timedelta(seconds=seconds)
