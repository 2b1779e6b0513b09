import logging

from django.db import transaction
from django.db.models import F, Max

from .exceptions import CountryNotFound, InvalidQuery
from .models import Country

logger = logging.getLogger(__name__)

# every field a refresh overwrites; everything except the surrogate id
REFRESHED_FIELDS = [
    "name", "capital", "region", "population", "flag_url",
    "currency_code", "exchange_rate", "estimated_gdp", "last_refreshed_at",
]

SORT_ORDERINGS = {
    "gdp_desc": [F("estimated_gdp").desc(nulls_last=True), "id"],
    "gdp_asc": [F("estimated_gdp").asc(nulls_first=True), "id"],
    "population_desc": ["-population", "id"],
    "population_asc": ["population", "id"],
}
DEFAULT_ORDERING = ["name", "id"]


class CountryRepository:
    """Store access for Country records, keyed by case-insensitive name."""

    def __init__(self, queryset=None):
        self._queryset = queryset if queryset is not None else Country.objects.all()

    def all(self):
        return self._queryset.all()

    def upsert(self, fields):
        """
        Insert or fully overwrite the record whose name matches
        `fields["name"]` case-insensitively. Returns (country, created).
        """
        with transaction.atomic():
            existing = (
                self.all()
                .select_for_update()
                .filter(name__iexact=fields["name"])
                .order_by("id")
                .first()
            )
            if existing is None:
                return self._queryset.create(**fields), True

            for name in REFRESHED_FIELDS:
                setattr(existing, name, fields[name])
            existing.save(update_fields=REFRESHED_FIELDS)
            return existing, False

    def get_by_name(self, name):
        country = self.all().filter(name__iexact=name).order_by("id").first()
        if country is None:
            raise CountryNotFound(name)
        return country

    def delete_by_name(self, name):
        deleted, _ = self.all().filter(name__iexact=name).delete()
        if not deleted:
            raise CountryNotFound(name)
        logger.info("Deleted country %s", name)

    def list(self, region=None, currency=None, sort=None):
        qs = self.all()
        if region:
            qs = qs.filter(region__iexact=region)
        if currency:
            qs = qs.filter(currency_code__iexact=currency)

        if sort:
            ordering = SORT_ORDERINGS.get(sort)
            if ordering is None:
                raise InvalidQuery({"sort": f"must be one of {', '.join(SORT_ORDERINGS)}"})
        else:
            ordering = DEFAULT_ORDERING
        return qs.order_by(*ordering)

    def count(self):
        return self.all().count()

    def top_by_estimated_gdp(self, limit=5):
        # ties fall back to insertion order
        return list(
            self.all()
            .filter(estimated_gdp__isnull=False)
            .order_by("-estimated_gdp", "id")[:limit]
        )

    def last_refreshed_at(self):
        return self.all().aggregate(last=Max("last_refreshed_at"))["last"]

    def status(self):
        return {
            "total_countries": self.count(),
            "last_refreshed_at": self.last_refreshed_at(),
        }
