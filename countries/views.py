import logging
import os

from django.http import FileResponse
from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response

from .exceptions import CountryNotFound, InvalidQuery, RefreshInProgress, UpstreamUnavailable
from .refresh import RefreshService
from .repository import CountryRepository
from .serializers import (
    CountryListQuerySerializer,
    CountrySerializer,
    RefreshResultSerializer,
    StatusSerializer,
)
from .summary import SummaryRenderer

logger = logging.getLogger(__name__)

SOURCE_LABELS = {
    "countries": "Countries API",
    "rates": "Exchange rates API",
}


def get_repository():
    return CountryRepository()


def get_summary_renderer(repository):
    return SummaryRenderer(repository)


def get_refresh_service(repository):
    return RefreshService(repository, get_summary_renderer(repository))


def validation_failed(details):
    return Response(
        {"error": "Validation failed", "details": details},
        status=status.HTTP_400_BAD_REQUEST,
    )


def country_not_found():
    return Response({"error": "Country not found"}, status=status.HTTP_404_NOT_FOUND)


@api_view(['POST'])
def refresh_countries(request):
    """
    POST /countries/refresh
    Fetch countries and exchange rates, then update or create cached data
    and regenerate the summary image.
    """
    service = get_refresh_service(get_repository())
    try:
        result = service.refresh()
    except UpstreamUnavailable as e:
        label = SOURCE_LABELS.get(e.source, e.source)
        return Response(
            {"error": "External data source unavailable", "details": f"Could not fetch data from {label}"},
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )
    except RefreshInProgress:
        return Response(
            {"error": "Refresh already in progress"},
            status=status.HTTP_409_CONFLICT,
        )

    data = RefreshResultSerializer(result).data
    data["message"] = "Refresh successful"
    data["errors"] = data["errors"][:5]  # show only first few
    return Response(data, status=status.HTTP_200_OK)


@api_view(['GET'])
def list_countries(request):
    """
    GET /countries
    Filters:
      - region, currency (case-insensitive equality)
    Sorting:
      - ?sort=gdp_desc | gdp_asc | population_desc | population_asc
    Default:
      - Ordered by name ascending.
    """
    query = CountryListQuerySerializer(data=request.query_params)
    if not query.is_valid():
        return validation_failed(query.errors)

    try:
        qs = get_repository().list(**query.validated_data)
    except InvalidQuery as e:
        return validation_failed(e.details)

    serializer = CountrySerializer(qs, many=True)
    return Response(serializer.data)


@api_view(['GET', 'DELETE'])
def country_detail(request, name):
    """
    GET /countries/:name  -> return 404 JSON if not found
    DELETE /countries/:name -> delete, return 204 or 404
    """
    repository = get_repository()
    try:
        if request.method == 'GET':
            serializer = CountrySerializer(repository.get_by_name(name))
            return Response(serializer.data)
        repository.delete_by_name(name)
    except CountryNotFound:
        return country_not_found()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
def get_status(request):
    """
    GET /status -> { total_countries, last_refreshed_at }
    last_refreshed_at is the max(last_refreshed_at) across records (or null)
    """
    return Response(StatusSerializer(get_repository().status()).data)


@api_view(['GET'])
def get_summary_image(request):
    """
    GET /countries/image
    Serve the most recently rendered summary image.
    """
    path = get_summary_renderer(get_repository()).get_path()
    if not os.path.exists(path):
        return Response({"error": "Summary image not found"}, status=status.HTTP_404_NOT_FOUND)
    return FileResponse(open(path, 'rb'), content_type='image/png')
