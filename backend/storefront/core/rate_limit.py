"""
Request rate limiting for public write endpoints.

Limited routes must accept a ``request: Request`` argument.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from storefront.core.config import get_settings

ORDER_CREATE_LIMIT = "10/minute"
CONTACT_CREATE_LIMIT = "5/minute"
REVIEW_CREATE_LIMIT = "10/minute"

limiter = Limiter(
    key_func=get_remote_address,
    enabled=get_settings().rate_limit_enabled,
)
