"""Constants for the recipe ingestion package."""

# Configuration keys (environment variables use ENV_PREFIX + key.upper())
ENV_PREFIX = "RECIPE_INGEST_"
CONF_TIMEOUT = "timeout"
CONF_USER_AGENT = "user_agent"
CONF_MAX_RESPONSE_SIZE = "max_response_size"
CONF_MAX_REDIRECTS = "max_redirects"
CONF_USE_CLOUDSCRAPER = "use_cloudscraper"
CONF_FRACTION_TOLERANCE = "fraction_tolerance"
CONF_MIN_DISPLAY_VALUE = "min_display_value"
CONF_CONVERT_UNITS = "convert_units"

# Default values
DEFAULT_TIMEOUT = 10
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
DEFAULT_MAX_RESPONSE_SIZE = 5 * 1024 * 1024
DEFAULT_MAX_REDIRECTS = 5
DEFAULT_USE_CLOUDSCRAPER = True
DEFAULT_CONVERT_UNITS = False

# Fraction formatting
DEFAULT_FRACTION_TOLERANCE = 0.001
DEFAULT_MIN_DISPLAY_VALUE = 0.01
MAX_FRACTION_DENOMINATOR = 16

# Portion multipliers offered by the display layer
PORTION_MULTIPLIERS = (0.25, 0.5, 1, 2)

# Extraction fallbacks and bounds
DEFAULT_TITLE = "Imported Recipe"
DEFAULT_SERVINGS = 1
MIN_SERVINGS = 1
MAX_SERVINGS = 100
PLACEHOLDER_INSTRUCTION = (
    "Instructions not available. Please refer to the source URL for cooking instructions."
)
MIN_VIABLE_INSTRUCTIONS = 3
INSTRUCTION_MIN_LENGTH = 20
INSTRUCTION_MAX_LENGTH = 1000
MAX_INGREDIENT_LENGTH = 200
INGREDIENT_SECTION_WALK_LIMIT = 5
INSTRUCTION_SECTION_WALK_LIMIT = 10
MIN_IMAGE_DIMENSION = 100

# User-facing messages
SCRAPE_FAILED_MESSAGE = (
    "Failed to extract recipe from URL. Please check the URL and try again."
)

# Extraction methods
EXTRACTION_JSONLD = "json-ld"
EXTRACTION_HEURISTIC = "heuristic"

# Event names passed to event callbacks
EVENT_METHOD_DETECTED = "method_detected"
EVENT_STRATEGY_MATCHED = "strategy_matched"
EVENT_EXTRACTION_COMPLETE = "extraction_complete"

# Request data keys
DATA_URL = "url"
DATA_INGREDIENTS = "ingredients"
DATA_MULTIPLIER = "multiplier"
DATA_CONVERT_UNITS = "convert_units"
DATA_ERROR = "error"
DATA_SECTIONS = "sections"
DATA_EXTRACTION_METHOD = "extraction_method"
DATA_MESSAGE = "message"
