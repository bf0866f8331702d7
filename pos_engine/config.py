"""
config.py — Environment-driven settings for the POS engine.

All values are read once at import time. Defaults target the docker-compose
service names used for local runs.
"""

import os

# Remote POS API (catalog + sale creation)
POS_API_URL = os.environ.get("POS_API_URL", "http://sales_service:8002")
POS_API_TIMEOUT = float(os.environ.get("POS_API_TIMEOUT", "5.0"))
POS_API_READ_TIMEOUT = float(os.environ.get("POS_API_READ_TIMEOUT", "8.0"))

# Logging
LOG_FILE = os.environ.get("POS_LOG_FILE", "pos_engine.log")
LOG_LEVEL = os.environ.get("POS_LOG_LEVEL", "INFO").upper()

# Customer name stored when the cashier leaves it blank
WALK_IN_CUSTOMER = os.environ.get("POS_WALK_IN_CUSTOMER", "Walk-in Customer")

# Display precision
QUANTITY_DECIMALS = 4
MONEY_DECIMALS = 2
