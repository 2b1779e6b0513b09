from rest_framework import serializers

from .models import Country
from .repository import SORT_ORDERINGS


class CountrySerializer(serializers.ModelSerializer):
    class Meta:
        model = Country
        fields = [
            'id', 'name', 'capital', 'region', 'population',
            'currency_code', 'exchange_rate', 'estimated_gdp',
            'flag_url', 'last_refreshed_at'
        ]
        read_only_fields = fields


class CountryListQuerySerializer(serializers.Serializer):
    """
    Query parameters accepted by GET /countries.
    Unknown parameters and empty values are rejected.
    """
    region = serializers.CharField(required=False)
    currency = serializers.CharField(required=False)
    sort = serializers.ChoiceField(choices=list(SORT_ORDERINGS), required=False)

    def to_internal_value(self, data):
        errors = {}
        for key in data.keys():
            if key not in self.fields:
                errors[key] = "is not a valid filter"
            elif data.get(key) == "":
                errors[key] = "is required"
        if errors:
            raise serializers.ValidationError(errors)
        return super().to_internal_value(data)


class StatusSerializer(serializers.Serializer):
    total_countries = serializers.IntegerField()
    last_refreshed_at = serializers.DateTimeField(allow_null=True)


class RefreshResultSerializer(serializers.Serializer):
    last_refreshed_at = serializers.DateTimeField()
    total_processed = serializers.IntegerField()
    created = serializers.IntegerField()
    updated = serializers.IntegerField()
    image_rendered = serializers.BooleanField()
    duration_seconds = serializers.FloatField()
    errors = serializers.ListField(child=serializers.DictField())
