import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Calendar time grid (day and week views)
CALENDAR_DAY_START_HOUR = float(os.getenv("CALENDAR_DAY_START_HOUR", "6"))
CALENDAR_DAY_END_HOUR = float(os.getenv("CALENDAR_DAY_END_HOUR", "24"))
CALENDAR_PIXELS_PER_HOUR = float(os.getenv("CALENDAR_PIXELS_PER_HOUR", "50"))
CALENDAR_MIN_DURATION_MINUTES = int(os.getenv("CALENDAR_MIN_DURATION_MINUTES", "30"))
CALENDAR_MIN_BLOCK_HEIGHT = float(os.getenv("CALENDAR_MIN_BLOCK_HEIGHT", "25"))
CALENDAR_SNAP_MINUTES = int(os.getenv("CALENDAR_SNAP_MINUTES", "30"))
# Hours are read in this zone when placing entries on the grid
CALENDAR_TIMEZONE = os.getenv("CALENDAR_TIMEZONE", "UTC")

# Capacity reported for club events, which have no facility
EVENT_MAX_CONCURRENT = int(os.getenv("EVENT_MAX_CONCURRENT", "999"))

SEED_DEMO_DATA = os.getenv("SEED_DEMO_DATA", "false").lower() == "true"
