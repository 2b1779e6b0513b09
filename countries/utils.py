import os
import random

from django.conf import settings
from django.utils import timezone


MULTIPLIER_LOW = 1000
MULTIPLIER_HIGH = 2000


def get_now():
    """Return current UTC datetime (aware)."""
    return timezone.now()


def make_multiplier(rng=random):
    """Uniform draw from [1000, 2000) used to scale the GDP estimate."""
    return MULTIPLIER_LOW + rng.random() * (MULTIPLIER_HIGH - MULTIPLIER_LOW)


def get_cache_dir():
    """Return absolute cache directory path (created if missing)."""
    path = os.path.abspath(settings.CACHE_DIR)
    os.makedirs(path, exist_ok=True)
    return path


def get_summary_image_path():
    """Return full path to the summary image in the writable cache."""
    configured = getattr(settings, "SUMMARY_IMAGE_PATH", None)
    if configured:
        return os.path.abspath(configured)
    return os.path.join(get_cache_dir(), "summary.png")
