from .user import User
from .profile import UserProfile, Gender, GenderPreference, LocationMode, RelationshipType
from .match import Match, MatchStatus
from .message import Message
