import enum
from sqlalchemy import Column, ForeignKey, BigInteger, Boolean, Integer, String, TIMESTAMP, UniqueConstraint, CheckConstraint, Index, func
from sqlalchemy.orm import relationship
from app.db.base import Base

class MatchStatus(str, enum.Enum):
    PENDING = "pending"
    LIKED = "liked"
    DISLIKED = "disliked"
    MATCHED = "matched"
    UNMATCHED = "unmatched"

class Match(Base):
    """
    One row per unordered pair of profiles.

    profile_a_id is always the smaller id, so a pair is found with a single
    equality lookup whichever side acts.
    """
    __tablename__ = "matches"

    id = Column(BigInteger, primary_key=True, autoincrement=True)
    profile_a_id = Column(BigInteger, ForeignKey("user_profiles.id", ondelete="CASCADE"), nullable=False)
    profile_b_id = Column(BigInteger, ForeignKey("user_profiles.id", ondelete="CASCADE"), nullable=False)

    status = Column(String(20), default=MatchStatus.PENDING.value, nullable=False)
    a_liked = Column(Boolean, default=False, nullable=False)
    b_liked = Column(Boolean, default=False, nullable=False)
    matched_at = Column(TIMESTAMP(timezone=True))

    version = Column(Integer, nullable=False, default=1)

    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), onupdate=func.now(), server_default=func.now())

    profile_a = relationship("UserProfile", foreign_keys=[profile_a_id])
    profile_b = relationship("UserProfile", foreign_keys=[profile_b_id])

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        UniqueConstraint('profile_a_id', 'profile_b_id', name='uq_match_pair'),
        CheckConstraint('profile_a_id < profile_b_id', name='ck_match_pair_order'),
        Index('ix_match_profile_b', 'profile_b_id'),
        Index('ix_match_status', 'status'),
    )

    def other_profile_id(self, profile_id: int) -> int:
        return self.profile_b_id if profile_id == self.profile_a_id else self.profile_a_id

    def has_party(self, profile_id: int) -> bool:
        return profile_id in (self.profile_a_id, self.profile_b_id)
