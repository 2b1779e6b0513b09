"""
Clients for the two upstream feeds: the country directory and the USD
exchange-rate table. Each fetch is a single request with a bounded timeout;
any transport, status, or decoding problem surfaces as UpstreamUnavailable.
"""
import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

import requests
from django.conf import settings
from requests.exceptions import RequestException

from .exceptions import UpstreamUnavailable

logger = logging.getLogger(__name__)

COUNTRIES_SOURCE = "countries"
RATES_SOURCE = "rates"

# upper bound of a BigIntegerField column
MAX_POPULATION = 2**63 - 1


@dataclass
class RawCountryObservation:
    name: str
    capital: str = ""
    region: str = ""
    population: int = 0
    flag_url: str = ""
    currency_codes: list = field(default_factory=list)


def _get_json(url, source):
    try:
        resp = requests.get(url, timeout=settings.UPSTREAM_TIMEOUT)
        resp.raise_for_status()
        return resp.json()
    except RequestException as e:
        logger.error("Fetching %s from %s failed: %s", source, url, e)
        raise UpstreamUnavailable(source, str(e)) from e
    except ValueError as e:
        # body was not valid JSON
        logger.error("Undecodable %s payload from %s: %s", source, url, e)
        raise UpstreamUnavailable(source, "invalid JSON payload") from e


def _as_text(value):
    if value is None:
        return ""
    return str(value)


def _as_population(value):
    try:
        population = int(value or 0)
    except (TypeError, ValueError, OverflowError):
        # NaN and Infinity decode as floats but have no integer value
        return 0
    return min(max(population, 0), MAX_POPULATION)


def parse_observation(item):
    """Normalize one country-directory entry, or return None if it has no name."""
    if not isinstance(item, dict):
        return None
    name = _as_text(item.get("name"))
    if not name.strip():
        return None

    codes = []
    for currency in item.get("currencies") or []:
        if isinstance(currency, dict):
            codes.append(_as_text(currency.get("code")).strip())
        else:
            codes.append("")

    return RawCountryObservation(
        name=name,
        capital=_as_text(item.get("capital")),
        region=_as_text(item.get("region")),
        population=_as_population(item.get("population")),
        flag_url=_as_text(item.get("flag")),
        currency_codes=codes,
    )


def fetch_countries():
    payload = _get_json(settings.COUNTRIES_API_URL, COUNTRIES_SOURCE)
    if not isinstance(payload, list):
        logger.error("Countries payload is %s, expected a list", type(payload).__name__)
        raise UpstreamUnavailable(COUNTRIES_SOURCE, "expected a JSON array")

    observations = []
    for item in payload:
        observation = parse_observation(item)
        if observation is None:
            logger.info("Skipping country entry without a name: %r", item)
            continue
        observations.append(observation)
    logger.info("Fetched %d countries", len(observations))
    return observations


def fetch_rates():
    payload = _get_json(settings.EXCHANGE_API_URL, RATES_SOURCE)
    rates = payload.get("rates") if isinstance(payload, dict) else None
    if not isinstance(rates, dict):
        logger.error("Rates payload has no 'rates' mapping")
        raise UpstreamUnavailable(RATES_SOURCE, "missing 'rates' mapping")

    table = {}
    for code, value in rates.items():
        # bools are ints in Python but never a valid rate
        if isinstance(value, bool):
            continue
        try:
            rate = float(value)
        except (TypeError, ValueError, OverflowError):
            logger.debug("Ignoring non-numeric rate for %s: %r", code, value)
            continue
        if math.isfinite(rate):
            table[code] = rate
    logger.info("Fetched %d exchange rates", len(table))
    return table


def fetch_all():
    """
    Fetch countries and rates concurrently and wait for both.
    Returns (observations, rates). When both fail, the countries
    failure is the one raised.
    """
    with ThreadPoolExecutor(max_workers=2) as pool:
        countries_future = pool.submit(fetch_countries)
        rates_future = pool.submit(fetch_rates)
        countries = countries_future.result()
        rates = rates_future.result()
    return countries, rates
