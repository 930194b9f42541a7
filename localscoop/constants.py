"""Shared constants for localscoop."""

VERSION = "0.1.0"

PLACES_BASE_URL = "https://places.googleapis.com/v1"

# Only request what the toolbar displays
PLACE_DETAILS_FIELD_MASK = [
    "id",
    "displayName",
    "formattedAddress",
    "regularOpeningHours",
    "businessStatus",
    "nationalPhoneNumber",
    "internationalPhoneNumber",
    "googleMapsUri",
    "location",
]

MAPS_SEARCH_URL = (
    "https://www.google.com/maps/search/?api=1&query={query}"
    "&query_place_id={place_id}"
)

# Sydney Opera House, used to test API connectivity
TEST_PLACE_ID = "ChIJN1t_tDeuEmsRUsoyG83frY4"

REQUIRED_CAPABILITY = "edit_posts"
