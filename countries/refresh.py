import logging
import threading
import time
from dataclasses import dataclass, field

from django.db import DatabaseError

from . import sources, utils
from .exceptions import RefreshInProgress, RenderFailure
from .reconcile import reconcile

logger = logging.getLogger(__name__)

_refresh_lock = threading.Lock()


@dataclass
class RefreshResult:
    last_refreshed_at: object
    total_processed: int = 0
    created: int = 0
    updated: int = 0
    errors: list = field(default_factory=list)
    image_rendered: bool = False
    duration_seconds: float = 0.0


class RefreshService:
    """
    Fetch -> reconcile -> upsert -> render.

    Upstream failures abort before anything is written. A storage fault on
    one record is logged and recorded in `errors`; the other records are
    still written. A render failure is logged and never fails the refresh.
    """

    def __init__(self, repository, renderer, source=sources, multiplier=utils.make_multiplier):
        self.repository = repository
        self.renderer = renderer
        self.source = source
        self.multiplier = multiplier

    def refresh(self):
        if not _refresh_lock.acquire(blocking=False):
            raise RefreshInProgress("A refresh is already running")
        try:
            return self._refresh()
        finally:
            _refresh_lock.release()

    def _refresh(self):
        start_time = time.monotonic()
        logger.info("Refreshing countries")

        observations, rates = self.source.fetch_all()

        now = utils.get_now()
        result = RefreshResult(last_refreshed_at=now)

        for observation in observations:
            fields = reconcile(observation, rates, now, multiplier=self.multiplier)
            try:
                _, created = self.repository.upsert(fields)
            except (DatabaseError, OverflowError) as e:
                # OverflowError comes from drivers such as sqlite3 on out-of-range integers
                logger.warning("Could not store %s: %s", observation.name, e)
                result.errors.append({"name": observation.name, "details": str(e)})
                continue
            result.total_processed += 1
            if created:
                result.created += 1
            else:
                result.updated += 1

        try:
            self.renderer.render()
            result.image_rendered = True
        except RenderFailure as e:
            logger.warning("Summary image not regenerated: %s", e)

        result.duration_seconds = round(time.monotonic() - start_time, 2)
        logger.info(
            "Refresh finished: %d stored (%d new, %d updated), %d failed in %.2fs",
            result.total_processed, result.created, result.updated,
            len(result.errors), result.duration_seconds,
        )
        return result
