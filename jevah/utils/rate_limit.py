"""Per-client request limits for the abuse-prone endpoints."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from jevah.config import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

# Limits are read from settings on every request so they can be tuned per environment.
auth_limit = limiter.limit(
    lambda: settings.RATE_LIMIT_AUTH,
    error_message="Too many authentication attempts, please try again later",
)
email_limit = limiter.limit(
    lambda: settings.RATE_LIMIT_EMAIL,
    error_message="Too many email requests, please try again in an hour",
)
sensitive_limit = limiter.limit(
    lambda: settings.RATE_LIMIT_SENSITIVE,
    error_message="Too many attempts, please try again in an hour",
)
upload_limit = limiter.limit(
    lambda: settings.RATE_LIMIT_UPLOAD,
    error_message="Upload limit exceeded, please try again in an hour",
)
follow_limit = limiter.limit(
    lambda: settings.RATE_LIMIT_FOLLOW,
    error_message="Too many follow/unfollow actions, please slow down",
)
games_limit = limiter.limit(
    lambda: settings.RATE_LIMIT_GAMES,
    error_message="Too many game actions, please slow down",
)
dating_limit = limiter.limit(
    lambda: settings.RATE_LIMIT_DATING,
    error_message="Too many requests, please try again later",
)
chatbot_limit = limiter.limit(
    lambda: settings.RATE_LIMIT_CHATBOT,
    error_message="Too many messages, please slow down",
)
