"""Dashboard configuration constants and environment parsing."""
import os

from dotenv import load_dotenv

# Ensure environment variables are loaded immediately upon import
load_dotenv()


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None or value.strip() == '':
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


# ============================================================================
# BACKEND
# ============================================================================

API_BASE_URL = os.environ.get('INVENTORY_API_URL', 'http://localhost:8000').rstrip('/')
BUSINESS_ID = int(os.environ.get('INVENTORY_BUSINESS_ID', '1'))
REQUEST_TIMEOUT = float(os.environ.get('INVENTORY_API_TIMEOUT', '10'))

# ============================================================================
# FEATURES
# ============================================================================

# Demand trend, demand summary, stockout prediction and sell/restock buttons
EXTENDED_FEATURES = _env_flag('INVENTORY_EXTENDED_FEATURES', True)

SELL_QUANTITY = -1
RESTOCK_QUANTITY = 5
NEW_PRODUCT_UNIT_COST = 0

# ============================================================================
# DISPLAY & LOGGING
# ============================================================================

CURRENCY_SYMBOL = os.environ.get('INVENTORY_CURRENCY_SYMBOL', '₹')
LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()
LOG_FILE = os.environ.get('LOG_FILE')
