from datetime import datetime, timedelta
from typing import Optional


def _plural(value: int, unit: str) -> str:
    return f"{value} {unit}{'s' if value > 1 else ''} ago"


def relative_time(timestamp: str, now: datetime) -> str:
    """Notification age: "Just now", "3 minutes ago", ..., then a plain date after a week."""
    then = datetime.fromisoformat(timestamp)
    seconds = int((now - then).total_seconds())
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24
    if seconds < 60:
        return "Just now"
    if minutes < 60:
        return _plural(minutes, "minute")
    if hours < 24:
        return _plural(hours, "hour")
    if days < 7:
        return _plural(days, "day")
    return then.strftime("%m/%d/%Y")


def message_time(timestamp: Optional[str], now: datetime) -> Optional[str]:
    """Conversation list time: "14:05" today, "Yesterday", else d/m/yyyy."""
    if not timestamp:
        return None
    then = datetime.fromisoformat(timestamp)
    if then.tzinfo is not None and now.tzinfo is not None:
        then = then.astimezone(now.tzinfo)
    if then.date() == now.date():
        return f"{then.hour}:{then.minute:02d}"
    if then.date() == (now - timedelta(days=1)).date():
        return "Yesterday"
    return f"{then.day}/{then.month}/{then.year}"


def initials(name: Optional[str]) -> str:
    parts = [p for p in (name or "").split(" ") if p]
    if not parts:
        return "?"
    if len(parts) == 1:
        return parts[0][0].upper()
    return (parts[0][0] + parts[-1][0]).upper()


def badge_text(count: int) -> Optional[str]:
    if count <= 0:
        return None
    return "9+" if count > 9 else str(count)
