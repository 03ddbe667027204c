from django.urls import path
from . import views

urlpatterns = [
    path("pools/", views.TopicPoolListCreateView.as_view(), name="topic-pools"),

    path("preferences/", views.PreferenceListCreateView.as_view(), name="preferences"),
    path("preferences/bulk-status/", views.PreferenceBulkStatusView.as_view(), name="preferences-bulk-status"),
    path("preferences/<int:pk>/", views.PreferenceDetailView.as_view(), name="preference-detail"),
    path("preferences/<int:pk>/status/", views.PreferenceStatusView.as_view(), name="preference-status"),

    path("offers/", views.OfferListCreateView.as_view(), name="offers"),
    path("offers/<int:pk>/", views.OfferDetailView.as_view(), name="offer-detail"),
    path("offers/<int:pk>/status/", views.OfferStatusView.as_view(), name="offer-status"),
]
