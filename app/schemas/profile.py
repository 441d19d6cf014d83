from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, FrozenSet, Optional
import json
import logging

from app.models.profile import Gender, GenderPreference, LocationMode, RelationshipType

logger = logging.getLogger(__name__)


def normalize_keywords(raw: Any) -> FrozenSet[str]:
    """
    Coerce stored keywords (list, JSON array string or comma separated string)
    into a set of trimmed, case-folded, non-empty strings.
    """
    if raw is None:
        return frozenset()

    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return frozenset()
        if text.startswith("[") and text.endswith("]"):
            try:
                parsed = json.loads(text)
            except ValueError:
                parsed = None
            if isinstance(parsed, list):
                return normalize_keywords(parsed)
        return normalize_keywords(text.split(","))

    if isinstance(raw, (list, tuple, set, frozenset)):
        keywords = set()
        for item in raw:
            if item is None:
                continue
            keyword = str(item).strip().casefold()
            if keyword:
                keywords.add(keyword)
        return frozenset(keywords)

    raise ValueError(f"Unsupported keywords value: {type(raw).__name__}")


class ProfileSnapshot(BaseModel):
    """Read-only view of a profile as the match engine sees it."""
    model_config = ConfigDict(frozen=True)

    id: int
    user_id: int
    display_name: str = ""
    push_token: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    gender: Optional[Gender] = None
    gender_preference: GenderPreference = GenderPreference.BOTH
    keywords: FrozenSet[str] = Field(default_factory=frozenset)
    relationship_types: FrozenSet[RelationshipType] = Field(default_factory=frozenset)
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    location_mode: LocationMode = LocationMode.GLOBAL
    is_hidden: bool = False

    @field_validator("keywords", mode="before")
    @classmethod
    def validate_keywords(cls, v):
        return normalize_keywords(v)

    @field_validator("relationship_types", mode="before")
    @classmethod
    def validate_relationship_types(cls, v):
        if v is None:
            return frozenset()
        if isinstance(v, (str, RelationshipType)):
            v = [v]
        known = set()
        for item in v:
            try:
                known.add(RelationshipType(item))
            except ValueError:
                logger.warning(f"Dropping unknown relationship type: {item!r}")
        return frozenset(known)

    @field_validator("gender", mode="before")
    @classmethod
    def validate_gender(cls, v):
        return v or None

    @field_validator("gender_preference", mode="before")
    @classmethod
    def validate_gender_preference(cls, v):
        return v or GenderPreference.BOTH

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None
