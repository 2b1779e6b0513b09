from django.core.management.base import BaseCommand, CommandError

from countries.exceptions import RefreshInProgress, UpstreamUnavailable
from countries.refresh import RefreshService
from countries.repository import CountryRepository
from countries.summary import SummaryRenderer


class Command(BaseCommand):
    help = "Fetch countries and exchange rates, update the cache and regenerate the summary image."

    def handle(self, *args, **options):
        repository = CountryRepository()
        service = RefreshService(repository, SummaryRenderer(repository))
        try:
            result = service.refresh()
        except (UpstreamUnavailable, RefreshInProgress) as e:
            raise CommandError(str(e)) from e

        self.stdout.write(self.style.SUCCESS(
            f"Refreshed {result.total_processed} countries "
            f"({result.created} new, {result.updated} updated) "
            f"at {result.last_refreshed_at.isoformat()}"
        ))
        for error in result.errors:
            self.stderr.write(f"{error['name']}: {error['details']}")
        if not result.image_rendered:
            self.stderr.write("Summary image was not regenerated")
