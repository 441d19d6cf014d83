from pydantic import BaseModel, ConfigDict, Field, field_validator
from app.config.constants import MAX_MESSAGE_LENGTH


class ProfileActionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    profile_id: int = Field(alias="profileId", gt=0)


class LikeWithMessageRequest(ProfileActionRequest):
    message: str

    @field_validator("message")
    @classmethod
    def validate_message(cls, v):
        v = (v or "").strip()
        if not v:
            raise ValueError("Message content is required")
        if len(v) > MAX_MESSAGE_LENGTH:
            raise ValueError(f"Message content cannot exceed {MAX_MESSAGE_LENGTH} characters")
        return v


class UnmatchRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    match_id: int = Field(alias="matchId", gt=0)
