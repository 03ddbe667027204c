from django.urls import path
from . import views

urlpatterns = [
    path("", views.ProposalListCreateView.as_view(), name="proposals"),
    path("bulk-review/", views.BulkReviewView.as_view(), name="proposals-bulk-review"),
    path("<int:pk>/", views.ProposalDetailView.as_view(), name="proposal-detail"),
    path("<int:pk>/topic/", views.TopicView.as_view(), name="proposal-topic"),
    path("<int:pk>/outline/", views.OutlineSubmitView.as_view(), name="proposal-outline"),
    path("<int:pk>/advisor-review/", views.AdvisorReviewView.as_view(), name="proposal-advisor-review"),
    path("<int:pk>/head-review/", views.HeadReviewView.as_view(), name="proposal-head-review"),
    path("<int:pk>/dean-review/", views.DeanReviewView.as_view(), name="proposal-dean-review"),
    path("<int:pk>/comments/", views.CommentListCreateView.as_view(), name="proposal-comments"),

    path("outlines/<int:pk>/review/", views.OutlineReviewView.as_view(), name="outline-review"),
]
