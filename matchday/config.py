import os
from pathlib import Path

# Base directory
BASE_DIR = Path(__file__).resolve().parent.parent

# Database
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR}/matchday.db")

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
SQL_LOG_LEVEL = os.getenv("SQL_LOG_LEVEL", "WARNING")

# Predictions
MAX_SCORE = int(os.getenv("MAX_SCORE", "20"))
MAX_POINTS_PER_PREDICTION = 3

# Bulk lock sweep: lock fixtures starting within this many minutes
LOCK_SWEEP_WINDOW_MINUTES = int(os.getenv("LOCK_SWEEP_WINDOW_MINUTES", "0"))

# Stage whose new submissions close at its first kickoff (empty disables the gate)
GATED_STAGE = os.getenv("GATED_STAGE", "group_stage")

# Identity (headers set by the upstream identity provider / proxy)
USER_ID_HEADER = os.getenv("USER_ID_HEADER", "X-User-Id")
USER_EMAIL_HEADER = os.getenv("USER_EMAIL_HEADER", "X-User-Email")
USER_NAME_HEADER = os.getenv("USER_NAME_HEADER", "X-User-Name")

# Admin user ids (comma separated, in production use environment variables)
ADMIN_USER_IDS = {
    user_id.strip()
    for user_id in os.getenv("ADMIN_USER_IDS", "").split(",")
    if user_id.strip()
}

# Typed confirmation required for the full prediction reset
RESET_CONFIRMATION_TEXT = "DELETE ALL PREDICTIONS"

# Leaderboard
LEADERBOARD_PAGE_SIZE = int(os.getenv("LEADERBOARD_PAGE_SIZE", "20"))
