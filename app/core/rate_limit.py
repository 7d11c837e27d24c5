"""
Request rate limiting, keyed by the caller's bearer token.

Routes decorated with limiter.limit(...) must accept a `request: Request` argument.
"""
from slowapi import Limiter

from app.features.users.dependencies import get_authorization_header


limiter = Limiter(key_func=get_authorization_header)
