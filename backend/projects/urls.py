from django.urls import path
from . import views

urlpatterns = [
    path("", views.ProjectListView.as_view(), name="projects"),
    path("retry-side-effects/", views.RetrySideEffectsView.as_view(), name="projects-retry"),
    path("<int:pk>/", views.ProjectDetailView.as_view(), name="project-detail"),
]
