import os
import json
from dotenv import load_dotenv

load_dotenv()

# Currency & Budgets
DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "NGN")
MIN_BUDGET = int(os.getenv("MIN_BUDGET", 100))  # Smallest currency unit

# Request Lifecycle
RESPONSE_WINDOW_HOURS = int(os.getenv("RESPONSE_WINDOW_HOURS", 48))
DEFAULT_MAX_REVISIONS = int(os.getenv("DEFAULT_MAX_REVISIONS", 2))
MIN_NOTE_LENGTH = 10  # Decline reasons and revision notes

# Platform Fees (percentage per creator tier)
DEFAULT_FEE_PERCENT = float(os.getenv("DEFAULT_FEE_PERCENT", 10))
CREATOR_TIER_FEES = json.loads(os.getenv(
    "CREATOR_TIER_FEES",
    '{"nano": 10, "micro": 10, "mid": 8, "macro": 7, "mega": 5}'
))

# Decline / Trust Policy
DECLINE_WINDOW_DAYS = int(os.getenv("DECLINE_WINDOW_DAYS", 30))
DECLINE_WARNING_THRESHOLD = int(os.getenv("DECLINE_WARNING_THRESHOLD", 3))
DECLINE_SUSPENSION_THRESHOLD = int(os.getenv("DECLINE_SUSPENSION_THRESHOLD", 5))
SUSPENSION_BASE_HOURS = int(os.getenv("SUSPENSION_BASE_HOURS", 24))
SUSPENSION_ESCALATION_FACTOR = int(os.getenv("SUSPENSION_ESCALATION_FACTOR", 2))
SUSPENSION_MAX_HOURS = int(os.getenv("SUSPENSION_MAX_HOURS", 24 * 30))

# Expiry Sweep Worker
EXPIRY_SWEEP_INTERVAL_MINUTES = int(os.getenv("EXPIRY_SWEEP_INTERVAL_MINUTES", 5))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
