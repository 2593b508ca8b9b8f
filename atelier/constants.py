"""Business constants"""

# Production statuses (per article)
STATUS_TODO = "a_faire"
STATUS_IN_PROGRESS = "en_cours"
STATUS_PAUSED = "en_pause"
STATUS_DONE = "termine"
PRODUCTION_STATUSES = (STATUS_TODO, STATUS_IN_PROGRESS, STATUS_PAUSED, STATUS_DONE)

# Production types
TYPE_COUTURE = "couture"  # sewing
TYPE_MAILLE = "maille"    # knitting
PRODUCTION_TYPES = (TYPE_COUTURE, TYPE_MAILLE)

# Product-name keywords that mark an article as knitwear
MAILLE_KEYWORDS = ("tricoté", "tricotée", "knitted", "wool")

# Source order statuses removed by the optional post-sync cleanup
FINAL_ORDER_STATUSES = (
    "completed", "refunded", "cancelled",
    "terminé", "remboursé", "annulé",
)

# Article id separators: canonical first, legacy second
ARTICLE_ID_SEPARATOR = "-"
LEGACY_ARTICLE_ID_SEPARATOR = "_"
DEFAULT_LINE_ITEM_ID = 1

UNKNOWN_TRICOTEUSE_NAME = "Tricoteuse inconnue"

# WooCommerce
WOOCOMMERCE_MAX_PER_PAGE = 100
FLAT_RATE_METHOD = "flat_rate"
# Shipping-line metadata keys that may carry the real carrier name
CARRIER_META_KEYS = ("carrier", "shipping_carrier", "transporteur", "carrier_name", "_carrier")

# Orders listing
DEFAULT_PAGE_SIZE = 15
MAX_PAGE_SIZE = 200
