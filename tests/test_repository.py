from datetime import timedelta

import pytest

from countries.exceptions import CountryNotFound, InvalidQuery
from countries.models import Country

from .factories import country_fields

pytestmark = pytest.mark.django_db


def test_upsert_inserts_new_record(repository, refreshed_at):
    country, created = repository.upsert(country_fields("Nigeria", refreshed_at))
    assert created
    assert country.pk is not None
    assert Country.objects.count() == 1


def test_upsert_same_name_case_insensitively_updates_in_place(repository, refreshed_at):
    original, _ = repository.upsert(country_fields("Nigeria", refreshed_at, capital="Lagos"))
    later = refreshed_at + timedelta(hours=1)

    updated, created = repository.upsert(country_fields(
        "NIGERIA", later, capital="Abuja", currency_code=None, exchange_rate=None, estimated_gdp=0.0,
    ))

    assert not created
    assert updated.pk == original.pk
    assert Country.objects.filter(name__iexact="nigeria").count() == 1
    stored = Country.objects.get(pk=original.pk)
    assert stored.name == "NIGERIA"
    assert stored.capital == "Abuja"
    assert stored.currency_code is None
    assert stored.exchange_rate is None
    assert stored.estimated_gdp == 0
    assert stored.last_refreshed_at == later


def test_upsert_overwrites_instead_of_merging(repository, refreshed_at):
    repository.upsert(country_fields("Ghana", refreshed_at, exchange_rate=15.2, estimated_gdp=99.0))
    repository.upsert(country_fields("Ghana", refreshed_at, currency_code="GHS", exchange_rate=None, estimated_gdp=None))

    stored = Country.objects.get(name="Ghana")
    assert stored.exchange_rate is None
    assert stored.estimated_gdp is None


def test_upsert_twice_is_stable(repository, refreshed_at):
    fields = country_fields("Kenya", refreshed_at)
    repository.upsert(fields)
    repository.upsert(fields)
    assert list(Country.objects.values_list("name", flat=True)) == ["Kenya"]


def test_get_by_name_is_case_insensitive(repository, refreshed_at):
    repository.upsert(country_fields("Nigeria", refreshed_at))
    assert repository.get_by_name("nIgErIa").name == "Nigeria"


def test_get_and_delete_missing_raise_not_found(repository):
    with pytest.raises(CountryNotFound):
        repository.get_by_name("Atlantis")
    with pytest.raises(CountryNotFound):
        repository.delete_by_name("Atlantis")


def test_delete_by_name(repository, refreshed_at):
    repository.upsert(country_fields("Nigeria", refreshed_at))
    repository.delete_by_name("NIGERIA")
    assert Country.objects.count() == 0


@pytest.fixture
def populated(repository, refreshed_at):
    repository.upsert(country_fields("Nigeria", refreshed_at, population=200, estimated_gdp=300.0))
    repository.upsert(country_fields("Ghana", refreshed_at, population=30, currency_code="GHS", estimated_gdp=None))
    repository.upsert(country_fields("France", refreshed_at, region="Europe", population=60, currency_code="EUR", estimated_gdp=900.0))
    repository.upsert(country_fields("Antarctica", refreshed_at, region="Polar", population=0, currency_code=None, exchange_rate=None, estimated_gdp=0.0))
    return repository


def names(qs):
    return [c.name for c in qs]


def test_list_defaults_to_name_order(populated):
    assert names(populated.list()) == ["Antarctica", "France", "Ghana", "Nigeria"]


def test_list_filters_region_and_currency(populated):
    assert names(populated.list(region="africa")) == ["Ghana", "Nigeria"]
    assert names(populated.list(currency="ghs")) == ["Ghana"]
    assert names(populated.list(region="Africa", currency="EUR")) == []


def test_list_sort_by_gdp_places_absent_values(populated):
    assert names(populated.list(sort="gdp_desc")) == ["France", "Nigeria", "Antarctica", "Ghana"]
    assert names(populated.list(sort="gdp_asc")) == ["Ghana", "Antarctica", "Nigeria", "France"]


def test_list_sort_by_population(populated):
    assert names(populated.list(sort="population_desc")) == ["Nigeria", "France", "Ghana", "Antarctica"]
    assert names(populated.list(sort="population_asc")) == ["Antarctica", "Ghana", "France", "Nigeria"]


def test_list_rejects_unknown_sort(populated):
    with pytest.raises(InvalidQuery):
        populated.list(sort="name_desc")


def test_top_by_estimated_gdp_skips_absent_and_breaks_ties_by_store_order(repository, refreshed_at):
    for name, gdp in [("A", 10.0), ("B", None), ("C", 50.0), ("D", 10.0), ("E", 5.0), ("F", 1.0), ("G", 0.5)]:
        repository.upsert(country_fields(name, refreshed_at, estimated_gdp=gdp))
    assert [c.name for c in repository.top_by_estimated_gdp(5)] == ["C", "A", "D", "E", "F"]


def test_status_empty(repository):
    assert repository.status() == {"total_countries": 0, "last_refreshed_at": None}


def test_status_reports_latest_refresh(repository, refreshed_at):
    later = refreshed_at + timedelta(days=1)
    repository.upsert(country_fields("Nigeria", refreshed_at))
    repository.upsert(country_fields("Ghana", later))
    assert repository.status() == {"total_countries": 2, "last_refreshed_at": later}
