"""Internal constants shared across the library."""

USER_AGENT = "fleetpairs/1.0"

#: Mean Earth radius in statute miles used by the haversine distance.
EARTH_RADIUS_MILES = 3958.7613

#: Public id emitted when no identifier can be derived for a record.
UNKNOWN_ASSET_ID = "UNKNOWN"

SAMSARA_BASE_URL = "https://api.samsara.com"
SAMSARA_LOCATIONS_ENDPOINT = "/fleet/vehicles/locations"

SKYBITZ_BASE_URL = "https://xml.skybitz.com"
SKYBITZ_POSITIONS_ENDPOINT = "/QueryPositions"
SKYBITZ_API_VERSION = "2.76"

DEFAULT_YARD_LAT = 41.43063
DEFAULT_YARD_LON = -88.19651
DEFAULT_YARD_RADIUS_MI = 0.5

# ------------------------------------------------------------------
# Persistence keys
# ------------------------------------------------------------------

LATEST_KEY_PREFIX = "latest"
PAIRS_KEY: tuple[str, ...] = ("pairs", "current")
