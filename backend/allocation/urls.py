#allocation/urls.py
from django.urls import path
from .views import (
    AcceptRecommendationView,
    AllocationDetailView,
    AllocationListCreateView,
    AllocationStatusView,
    AllocationUploadView,
    BulkAllocationView,
    BulkStatusView,
    RecommendationView,
    StatisticsView,
)

urlpatterns = [
    path("", AllocationListCreateView.as_view(), name="allocation_list"),
    path("recommendation/", RecommendationView.as_view(), name="allocation_recommendation"),    # GET ?export=xlsx
    path("recommendation/accept/", AcceptRecommendationView.as_view(), name="allocation_accept"),
    path("bulk/", BulkAllocationView.as_view(), name="allocation_bulk"),
    path("bulk/upload/", AllocationUploadView.as_view(), name="allocation_upload"),
    path("bulk/status/", BulkStatusView.as_view(), name="allocation_bulk_status"),
    path("statistics/", StatisticsView.as_view(), name="allocation_statistics"),
    path("<int:pk>/", AllocationDetailView.as_view(), name="allocation_detail"),
    path("<int:pk>/status/", AllocationStatusView.as_view(), name="allocation_status"),
]
