from datetime import datetime, timezone
from sqlalchemy import Column, String, BigInteger, Boolean, Integer, Date, DateTime, func
from app.db.base import Base

class User(Base):
    __tablename__ = "users"

    id = Column(BigInteger, primary_key=True, autoincrement=True)
    first_name = Column(String(100))
    last_name = Column(String(100))
    email = Column(String(255), unique=True, index=True)
    push_token = Column(String(500))  # FCM device token

    # Premium
    is_premium = Column(Boolean, default=False, nullable=False)
    premium_expiry = Column(DateTime(timezone=True))

    # Daily like quota, reset lazily on the first access of a new calendar day
    daily_likes_used = Column(Integer, default=0, nullable=False)
    last_like_reset_date = Column(Date)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now())

    @property
    def display_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    def is_premium_active(self, now: datetime = None) -> bool:
        if not self.is_premium or not self.premium_expiry:
            return False
        now = now or datetime.now(timezone.utc)
        expiry = self.premium_expiry
        if expiry.tzinfo is None:
            expiry = expiry.replace(tzinfo=timezone.utc)
        return now < expiry
