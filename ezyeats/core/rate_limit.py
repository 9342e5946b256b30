from slowapi import Limiter
from slowapi.util import get_remote_address
from ezyeats.config import settings

# Rate limiter shared by the app and the routers that tighten limits
limiter = Limiter(key_func=get_remote_address, default_limits=[settings.RATE_LIMIT_PER_MINUTE])
