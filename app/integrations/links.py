"""
Public URL construction for links sent to citizens
"""
from urllib.parse import quote

from app.core.config import Settings


def build_feedback_url(secret: str, config: Settings) -> str:
    """
    Build the feedback page URL carrying the plaintext token

    Args:
        secret: Plaintext token secret
        config: Settings providing SITE_URL and FEEDBACK_PATH

    Returns:
        Absolute URL, e.g. https://site/feedback/?token=<secret>
    """
    base = config.SITE_URL.rstrip("/")
    path = "/" + config.FEEDBACK_PATH.lstrip("/")
    return f"{base}{path}?token={quote(secret, safe='')}"
