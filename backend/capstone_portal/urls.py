# backend/capstone_portal/urls.py
from django.contrib import admin
from django.urls import include, path
from django.http import JsonResponse
from django.conf import settings
from django.conf.urls.static import static
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView, SpectacularSwaggerView


def health_view(request):
    return JsonResponse({"status": "ok"})


urlpatterns = [
    # HEALTH
    path("health/", health_view, name="health"),

    # DJANGO ADMIN
    path("admin/", admin.site.urls),

    # Accounts / identity
    path("api/accounts/", include(("users.urls", "accounts"), namespace="accounts")),

    # API DOCS
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    path("api/docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),
    path("api/redoc/", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),

    # APP APIs
    path("api/", include([
        path("enrollment/", include("enrollment.urls")),
        path("allocation/", include("allocation.urls")),
        path("proposals/", include("proposals.urls")),
        path("projects/", include("projects.urls")),
    ])),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
