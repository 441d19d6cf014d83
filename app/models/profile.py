import enum
from sqlalchemy import Column, String, Text, ForeignKey, BigInteger, Boolean, Float, Date, TIMESTAMP, Index, func
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import relationship, backref
from app.db.base import Base

class Gender(str, enum.Enum):
    MALE = "M"
    FEMALE = "F"
    OTHER = "O"

class GenderPreference(str, enum.Enum):
    MEN = "M"
    WOMEN = "W"
    BOTH = "B"

class LocationMode(str, enum.Enum):
    LOCAL = "local"
    GLOBAL = "global"

class RelationshipType(str, enum.Enum):
    FRIENDSHIP = "friendship"
    CASUAL = "casual"
    LONG_TERM = "long_term"
    MARRIAGE = "marriage"
    NOT_SURE = "not_sure"

class UserProfile(Base):
    __tablename__ = "user_profiles"

    id = Column(BigInteger, primary_key=True, autoincrement=True)
    user_id = Column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    bio = Column(Text)
    birth_date = Column(Date)
    gender = Column(String(1))
    gender_preference = Column(String(1), default=GenderPreference.BOTH.value, nullable=False)
    relationship_types = Column(ARRAY(Text), default=list)
    keywords = Column(ARRAY(Text), default=list)
    location = Column(String(255))
    latitude = Column(Float)
    longitude = Column(Float)
    location_mode = Column(String(10), default=LocationMode.GLOBAL.value, nullable=False)
    is_hidden = Column(Boolean, default=False, nullable=False)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), onupdate=func.now(), server_default=func.now())

    user = relationship("User", backref=backref("profile", uselist=False, cascade="all, delete-orphan"))

    __table_args__ = (
        Index('ix_profile_hidden_gender', 'is_hidden', 'gender'),
    )
