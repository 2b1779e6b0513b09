from django.db import models
from django.db.models.functions import Lower


class Country(models.Model):
    # id: auto-generated surrogate; the natural key is the case-insensitive name
    name = models.CharField(max_length=200)
    capital = models.CharField(max_length=200, blank=True, default="")
    region = models.CharField(max_length=100, blank=True, default="")
    population = models.BigIntegerField(default=0)
    # currency_code: null when the source reports no currency
    currency_code = models.CharField(max_length=10, null=True, blank=True)
    # exchange_rate: units of local currency per 1 USD; null when no rate was found
    exchange_rate = models.FloatField(null=True, blank=True)
    # estimated_gdp: 0 without a currency, null without a rate
    estimated_gdp = models.FloatField(null=True, blank=True)
    flag_url = models.URLField(max_length=500, blank=True, default="")
    last_refreshed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        verbose_name_plural = "countries"
        constraints = [
            models.UniqueConstraint(Lower("name"), name="country_name_ci_unique"),
        ]

    def __str__(self):
        return self.name
