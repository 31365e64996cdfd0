"""
Global slowapi rate limiter.

Imported by actions/router.py for per-endpoint limits. Mounted onto app.state
in main.py so slowapi middleware can find it. Disabled when ENV_NAME is
"development".
"""
import os

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=os.getenv("RATE_LIMIT_STORAGE_URI", "memory://"),
    enabled=os.getenv("ENV_NAME", "development").lower() != "development",
)
