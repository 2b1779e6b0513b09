import logging
import os
import tempfile
from datetime import timezone

from django.conf import settings
from django.db import DatabaseError
from PIL import Image, ImageDraw, ImageFont

from . import utils
from .exceptions import RenderFailure

logger = logging.getLogger(__name__)

IMAGE_SIZE = (800, 600)
BACKGROUND = (240, 248, 255)
TEXT_COLOR = (0, 0, 0)
MUTED_COLOR = (110, 110, 110)
ACCENT_COLOR = (20, 60, 160)

TITLE = "Country Data Summary"
TOP_HEADER = "Top 5 Countries by Estimated GDP:"
EMPTY_TOP = "No GDP data available."
PLACEHOLDER = "N/A"
NEVER = "never"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S UTC"
TOP_LIMIT = 5


def format_gdp(value):
    if value is None:
        return PLACEHOLDER
    return f"{value:,.2f}"


def format_timestamp(value):
    if value is None:
        return NEVER
    if value.utcoffset() is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime(TIMESTAMP_FORMAT)


def summary_lines(total, top, last_refreshed_at):
    """Text content of the summary, without layout."""
    if top:
        ranked = [
            f"{rank}. {country.name} - {format_gdp(country.estimated_gdp)}"
            for rank, country in enumerate(top, start=1)
        ]
    else:
        ranked = []
    return {
        "title": TITLE,
        "total": f"Total Countries: {total}",
        "header": TOP_HEADER,
        "ranked": ranked,
        "timestamp": f"Last Refreshed: {format_timestamp(last_refreshed_at)}",
    }


def _load_font(size):
    path = getattr(settings, "SUMMARY_FONT_PATH", "")
    if path:
        try:
            return ImageFont.truetype(path, size)
        except OSError:
            logger.debug("Font %s unavailable, using Pillow default", path)
    return ImageFont.load_default()


class SummaryRenderer:
    """Draws the fixed-layout summary PNG from the current store state."""

    def __init__(self, repository, path=None):
        self.repository = repository
        self.path = path

    def get_path(self):
        return self.path or utils.get_summary_image_path()

    def render(self):
        """Regenerate the summary image, replacing any previous one. Returns its path."""
        try:
            total = self.repository.count()
            top = self.repository.top_by_estimated_gdp(TOP_LIMIT)
            last = self.repository.last_refreshed_at()
        except DatabaseError as e:
            raise RenderFailure(f"Could not read countries for summary image: {e}") from e
        lines = summary_lines(total, top, last)

        try:
            path = self.get_path()
            img = self.draw(lines)
            directory = os.path.dirname(path) or "."
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(suffix=".png", dir=directory)
            try:
                with os.fdopen(fd, "wb") as fh:
                    img.save(fh, "PNG")
                os.replace(tmp_path, path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise
        except (OSError, ValueError) as e:
            raise RenderFailure(f"Could not render summary image: {e}") from e

        logger.info("Summary image written to %s (%d countries)", path, total)
        return path

    def draw(self, lines):
        img = Image.new("RGB", IMAGE_SIZE, color=BACKGROUND)
        draw = ImageDraw.Draw(img)

        font_title = _load_font(28)
        font_body = _load_font(20)
        font_list = _load_font(18)

        draw.text((50, 50), lines["title"], fill=TEXT_COLOR, font=font_title)
        draw.text((50, 120), lines["total"], fill=TEXT_COLOR, font=font_body)
        draw.text((50, 180), lines["header"], fill=TEXT_COLOR, font=font_body)

        y = 225
        if not lines["ranked"]:
            draw.text((70, y), EMPTY_TOP, fill=MUTED_COLOR, font=font_list)
        for line in lines["ranked"]:
            draw.text((70, y), line, fill=ACCENT_COLOR, font=font_list)
            y += 40

        draw.text((50, 520), lines["timestamp"], fill=TEXT_COLOR, font=font_body)
        return img
