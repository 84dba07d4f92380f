# ------------------------------ IMPORTS ------------------------------
import html
from datetime import datetime, timezone
from typing import Optional

# ------------------------------ TIME HELPERS ------------------------------

def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)

def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes read back from SQLite."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value

# ------------------------------ STRING HELPERS ------------------------------

def normalize_text(value: Optional[str]) -> str:
    """Lowercase and trim a string for case-insensitive comparison."""
    return (value or "").strip().lower()

def sanitize_comment(comment: Optional[str]) -> str:
    """Trim and HTML-escape a moderator comment before storing it."""
    return html.escape((comment or "").strip(), quote=True)

# ------------------------------ END OF FILE ------------------------------
