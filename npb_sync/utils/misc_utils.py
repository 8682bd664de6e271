# npb_sync/utils/misc_utils.py
import re
from datetime import datetime, timezone


def generate_team_id(name_en: str) -> str:
    """Derives the canonical team id from its English name ("Yomiuri Giants" -> "yomiuri-giants")."""
    return re.sub(r"\s+", "-", name_en.strip().lower())


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
