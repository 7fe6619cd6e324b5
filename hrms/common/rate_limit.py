"""Rate limiting configuration using slowapi.

A module-level Limiter shared by routers (per-endpoint overrides via
``@limiter.limit``) and installed on the app in main.py, where
SlowAPIMiddleware applies the default budget to every other route.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

# Credential endpoints get a tighter budget than the 60/minute default.
LOGIN_RATE_LIMIT = "10/minute"

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["60/minute"],
)
