import math
import secrets
import string
import time
from datetime import datetime, timezone
from fastapi import Query
from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["argon2"], deprecated = "auto")

ROOM_ALPHABET = string.ascii_letters + string.digits
MAX_PAGE_SIZE = 50

def hash(password):
    return pwd_context.hash(password)

def verify(user_password, hashed_password):
    if not hashed_password:
        return False
    return pwd_context.verify(user_password, hashed_password)

def utcnow():
    return datetime.now(timezone.utc)

def seconds_between(start: datetime, end: datetime) -> int:
    # sqlite hands back naive datetimes, treat them as UTC
    if start.tzinfo is None:
        start = start.replace(tzinfo=timezone.utc)
    if end.tzinfo is None:
        end = end.replace(tzinfo=timezone.utc)
    return int((end - start).total_seconds())

def generate_room_id() -> str:
    return "room-" + "".join(secrets.choice(ROOM_ALPHABET) for _ in range(12))

def generate_transaction_id() -> str:
    return f"txn_{int(time.time() * 1000)}_{secrets.token_hex(5)[:9]}"

def round_rating(value: float) -> float:
    """Round half up to one decimal place (4.25 -> 4.3, unlike round())."""
    return math.floor(value * 10 + 0.5) / 10


class Page:
    """Query-string pagination: page >= 1, limit clamped to 1..MAX_PAGE_SIZE."""

    def __init__(self, page: int = Query(1), limit: int = Query(10)):
        self.page = max(1, page)
        self.limit = min(MAX_PAGE_SIZE, max(1, limit))
        self.skip = (self.page - 1) * self.limit

    def apply(self, query):
        return query.offset(self.skip).limit(self.limit)

    def meta(self, total: int) -> dict:
        return {"page": self.page, "limit": self.limit, "total": total, "pages": math.ceil(total / self.limit)}
