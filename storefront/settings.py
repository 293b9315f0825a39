# storefront/settings.py
import os
from dotenv import load_dotenv

load_dotenv()

DATA_DIR = os.getenv("STOREFRONT_DATA_DIR", ".storefront")
SEED_PATH = os.getenv("STOREFRONT_SEED_PATH", "data/seed.json")
NOTIFICATION_TTL_SECONDS = float(os.getenv("STOREFRONT_NOTIFICATION_TTL", 3))
LOG_LEVEL = os.getenv("STOREFRONT_LOG_LEVEL", "INFO")
