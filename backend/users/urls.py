#backend/users/urls.py
from django.urls import path
from . import views
from rest_framework_simplejwt.views import (
    TokenObtainPairView,
    TokenRefreshView,
)

app_name = 'accounts'

urlpatterns = [
    # JWT token endpoints
    path('token/', TokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),

    # Identity
    path('me/', views.MeView.as_view(), name='me'),
    path('roles/', views.roles_list, name='roles_list'),

    # Organisation
    path('faculties/', views.FacultyListView.as_view(), name='faculty_list'),
    path('divisions/<int:division_id>/members/', views.DivisionMembersView.as_view(), name='division_members'),
]
