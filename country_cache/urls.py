"""
URL configuration for country_cache project.

The country endpoints live in countries.urls; admin is mounted at /admin/.
Unknown routes and unhandled errors answer with JSON instead of HTML pages.
"""
import logging

from django.contrib import admin
from django.urls import path, include
from django.http import JsonResponse

logger = logging.getLogger(__name__)

urlpatterns = [
    path('admin/', admin.site.urls),
    path('', include('countries.urls'))
]


def custom_404(request, exception):
    return JsonResponse({"error": "Endpoint not found, try /countries or /status"}, status=404)


def custom_500(request):
    logger.error("Internal server error on %s %s", request.method, request.path)
    return JsonResponse({"error": "Internal server error"}, status=500)


handler404 = "country_cache.urls.custom_404"
handler500 = "country_cache.urls.custom_500"
