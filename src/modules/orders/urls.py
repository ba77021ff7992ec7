"""Order URL configuration."""

from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter

from modules.orders.views import EvaluationView, OrderViewSet, PublicTrackingView

router = DefaultRouter(trailing_slash=True)
router.register("orders", OrderViewSet, basename="order")

urlpatterns = [
    path(
        "public/tracking/<str:code>/",
        PublicTrackingView.as_view(),
        name="public-tracking",
    ),
    path(
        "public/evaluations/",
        EvaluationView.as_view(),
        name="public-evaluation",
    ),
    *router.urls,
]
