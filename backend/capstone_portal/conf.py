from django.conf import settings

DEFAULTS = {
    "FALLBACK_STRATEGY": "least_loaded",
    "FALLBACK_SEED": None,
    "DEFAULT_TOPIC_TITLE": "Research topic with {lecturer}",
    "HEAD_FAST_TRACK": False,
}


def capstone_setting(name):
    """Read one key of settings.CAPSTONE, falling back to the built-in default."""
    overrides = getattr(settings, "CAPSTONE", None) or {}
    if name in overrides:
        return overrides[name]
    return DEFAULTS[name]
