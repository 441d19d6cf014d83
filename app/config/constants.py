"""
Application Constants

This module contains all magic strings and numbers used throughout the application.
Centralizing constants makes the codebase more maintainable and easier to update.
"""

# ============================================================================
# Like Quota Constants
# ============================================================================

FREE_DAILY_LIKES = 10

# Wire value for "unlimited" in remainingLikes / dailyLimit responses
UNLIMITED_WIRE_VALUE = -1

# ============================================================================
# Message Constants
# ============================================================================

MAX_MESSAGE_LENGTH = 1000
MESSAGE_PREVIEW_LENGTH = 50

# ============================================================================
# Candidate Ranking Constants
# ============================================================================

EARTH_RADIUS_KM = 6371.0
LOCAL_RADIUS_KM = 50.0

# Candidates fetched from the store before ranking
CANDIDATE_POOL_LIMIT = 100
DEFAULT_CANDIDATES_LIMIT = 20
MAX_CANDIDATES_LIMIT = 100

# Weights when relationship types are the basis of ranking
RELATIONSHIP_KEYWORD_WEIGHT = 0.4
RELATIONSHIP_OVERLAP_WEIGHT = 0.6

# Weights when distance is the basis of ranking
DISTANCE_KEYWORD_WEIGHT = 0.6
DISTANCE_PROXIMITY_WEIGHT = 0.4

# (upper bound km, points), checked in order; anything further gets DISTANCE_SCORE_FLOOR
DISTANCE_SCORE_STEPS = (
    (5, 100),
    (10, 80),
    (25, 60),
    (50, 40),
    (100, 20),
)
DISTANCE_SCORE_FLOOR = 10
DISTANCE_SCORE_MAX = 100

# Gender preference -> gender of candidates to keep (B keeps everyone)
GENDER_PREFERENCE_TARGETS = {
    "M": "M",
    "W": "F",
    "F": "F",
}

GLOBAL_MODE_SUGGESTION = {
    "type": "enable_global_mode",
    "message": "No matches found in your area. Try enabling global mode to see profiles worldwide!",
    "action": "update_location_mode",
    "newMode": "global",
}

# ============================================================================
# Notification Constants
# ============================================================================

NOTIFICATION_DEDUP_KEY_PREFIX = "match_engine:notified"
PUSH_TIMEOUT_SECONDS = 10
PUSH_CHANNEL_ID = "match_notifications"
