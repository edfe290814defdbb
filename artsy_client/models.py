from datetime import datetime

from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.utcnow()


class CookieEntry(SQLModel, table=True):
    __tablename__ = "cookie_entries"

    host: str = Field(primary_key=True)
    payload: str = Field(default="[]")
    updated_at: datetime = Field(default_factory=utcnow)
