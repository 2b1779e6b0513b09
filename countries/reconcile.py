import math

from . import utils


def select_currency_code(observation):
    """First listed currency wins; empty or missing code means no currency."""
    if not observation.currency_codes:
        return None
    return observation.currency_codes[0] or None


def lookup_rate(rates, currency_code):
    rate = rates.get(currency_code)
    # a zero/negative rate would make the estimate infinite or negative
    if rate is None or not math.isfinite(rate) or rate <= 0:
        return None
    return rate


def reconcile(observation, rates, refreshed_at, multiplier=utils.make_multiplier):
    """
    Merge one country observation with the rate table into Country field values.

    - no currency: exchange_rate None, estimated_gdp 0
    - currency with a rate: estimated_gdp = population * U / rate, U in [1000, 2000)
    - currency without a usable rate, or an estimate that is not finite:
      exchange_rate and estimated_gdp None

    `refreshed_at` is the single timestamp of the refresh; `multiplier` is
    called once per priced record.
    """
    currency_code = select_currency_code(observation)
    exchange_rate = None
    estimated_gdp = None

    if currency_code is None:
        estimated_gdp = 0.0
    else:
        exchange_rate = lookup_rate(rates, currency_code)
        if exchange_rate is not None:
            estimated_gdp = observation.population * multiplier() / exchange_rate
            # a tiny positive rate can still overflow to inf
            if not math.isfinite(estimated_gdp):
                exchange_rate = None
                estimated_gdp = None

    return {
        "name": observation.name,
        "capital": observation.capital,
        "region": observation.region,
        "population": observation.population,
        "flag_url": observation.flag_url,
        "currency_code": currency_code,
        "exchange_rate": exchange_rate,
        "estimated_gdp": estimated_gdp,
        "last_refreshed_at": refreshed_at,
    }
