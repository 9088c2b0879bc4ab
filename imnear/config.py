"""
Configuration constants for imnear.
"""

__version__ = "0.2.0"

# --- File Type Definitions ---
IMAGE_EXTS = {'.jpg', '.jpeg', '.jpe', '.tif', '.tiff', '.heic'}
VIDEO_EXTS = {'.mp4', '.mov', '.m4v', '.3gp'}

# Extension to Type Mapping
# Used to pick an extraction strategy without complex if/else chains
EXT_TO_TYPE = {}
for ext in IMAGE_EXTS: EXT_TO_TYPE[ext] = 'image'
for ext in VIDEO_EXTS: EXT_TO_TYPE[ext] = 'video'

# --- EXIF GPS Parsing ---
GPS_TAGS = {
    'lat': 'GPS GPSLatitude',
    'lat_ref': 'GPS GPSLatitudeRef',
    'lon': 'GPS GPSLongitude',
    'lon_ref': 'GPS GPSLongitudeRef',
}

# exifread only negates longitudes ('W'). Southern latitudes keep a positive
# sign unless this is switched on.
HONOR_LATITUDE_REF = False

# --- External Decoder ---
EXIFTOOL_CMD = ["exiftool", "-json"]
EXIFTOOL_TIMEOUT_SEC = 30.0

# --- Geocoding ---
NOMINATIM_URL = "https://nominatim.openstreetmap.org/search"
DEFAULT_USER_AGENT = f"imnear/{__version__}"
HTTP_TIMEOUT_SEC = 10.0

# --- Distance ---
EARTH_RADIUS_M = 6371008.8  # mean Earth radius

# --- Cache Layout ---
CACHE_DIR_ENV = "IMNEAR_CACHE_DIR"
METADATA_CACHE_SUBDIR = "metadata"
GEOCODE_CACHE_SUBDIR = "nominatim"
MAX_KEY_BYTES = 200
