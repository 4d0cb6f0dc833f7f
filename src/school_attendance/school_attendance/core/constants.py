"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time

DEFAULT_ENTRY_TIME = time(8, 0)
DEFAULT_EXIT_TIME = time(13, 0)
DEFAULT_TOLERANCE_MINUTES = 5
DEFAULT_SHIFT = "MAÑANA"

DEFAULT_SERVICE_TIMEOUT = 30
DEFAULT_HEALTH_TIMEOUT = 5
DEFAULT_SEARCH_LIMIT = 5
DEFAULT_DISTANCE_THRESHOLD = 0.6
DEFAULT_RETRY_FAILED_HOURS = 24

NO_PHOTO_MESSAGE = "No photo URL available"
NO_FACE_MESSAGE = "No face detected in the image"
ENTITY_NOT_FOUND_MESSAGE = "Entity not found"

LOCAL_PHONE_DIGITS = 9
PHONE_COUNTRY_PREFIX = "51"
