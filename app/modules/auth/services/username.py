"""Username normalisation, availability and suggestions"""
import re
import secrets
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.errors import ValidationError
from app.modules.user_management.models.user import User

USERNAME_PATTERN = re.compile(r"^[a-z0-9._]{3,15}$")
MAX_LENGTH = 15
SUGGESTION_LIMIT = 5


def extract_clean(value: str) -> str:
    return value.strip().lstrip("@").strip().lower()


def normalize_username(value: str) -> str:
    """Validate a handle and return it as '@handle'"""
    clean = extract_clean(value)
    if not USERNAME_PATTERN.match(clean):
        raise ValidationError("Invalid username format. Use 3-15 chars: a-z, 0-9, dot or underscore.")
    return f"@{clean}"


def is_username_available(db: Session, username: str, exclude_user_id: Optional[str] = None) -> bool:
    query = db.query(User.id).filter(User.username == normalize_username(username))
    if exclude_user_id:
        query = query.filter(User.id != exclude_user_id)
    return query.first() is None


def digits(n: int) -> str:
    return "".join(secrets.choice("0123456789") for _ in range(n))


def _candidates(base: str, first: Optional[str], last: Optional[str]) -> List[str]:
    year = datetime.utcnow().year
    stems = [base]
    if first:
        stems += [first, f"{first}{last or ''}", f"{first}.{last}" if last else f"the{first}", f"{first}_{last}" if last else f"real{first}"]

    candidates = []
    for stem in stems:
        candidates += [stem, f"{stem}{digits(2)}", f"{stem}_{digits(3)}", f"{stem}{year % 100}", f"{stem}.{digits(2)}"]
    candidates += [f"user{digits(4)}", f"hello{digits(4)}"]

    seen = set()
    result = []
    for candidate in candidates:
        candidate = re.sub(r"[^a-z0-9._]", "", candidate.lower())[:MAX_LENGTH]
        if len(candidate) >= 3 and candidate not in seen:
            seen.add(candidate)
            result.append(candidate)
    return result


def generate_suggestions(db: Session, requested: str, user_id: Optional[str] = None, limit: int = SUGGESTION_LIMIT) -> List[str]:
    """Free usernames close to the requested one, checked in a single query"""
    base = re.sub(r"[^a-z0-9._]", "", extract_clean(requested))[:MAX_LENGTH - 3] or "user"

    first = last = None
    if user_id:
        user = db.query(User.name).filter(User.id == user_id).first()
        if user and user.name:
            parts = [p for p in re.split(r"\s+", user.name.lower()) if p]
            first = parts[0] if parts else None
            last = "".join(parts[1:]) or None

    handles = [f"@{c}" for c in _candidates(base, first, last)]
    taken = {row.username for row in db.query(User.username).filter(User.username.in_(handles)).all()}
    return [h for h in handles if h not in taken][:limit]
