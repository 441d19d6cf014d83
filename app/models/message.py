from sqlalchemy import Column, Text, ForeignKey, BigInteger, Boolean, TIMESTAMP, func
from sqlalchemy.orm import relationship, backref
from app.db.base import Base

class Message(Base):
    __tablename__ = "messages"

    id = Column(BigInteger, primary_key=True, autoincrement=True)
    match_id = Column(BigInteger, ForeignKey("matches.id", ondelete="CASCADE"), nullable=False, index=True)
    sender_profile_id = Column(BigInteger, ForeignKey("user_profiles.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())

    match = relationship("Match", backref=backref("messages", cascade="all, delete-orphan"))
