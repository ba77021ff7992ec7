"""Schedule URL configuration."""

from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter

from modules.schedules.views import (
    AvailableSlotsView,
    BookSlotView,
    ScheduleSlotViewSet,
)

router = DefaultRouter(trailing_slash=True)
router.register("schedules", ScheduleSlotViewSet, basename="schedule")

urlpatterns = [
    path(
        "public/schedules/available/",
        AvailableSlotsView.as_view(),
        name="public-available-slots",
    ),
    path("public/schedules/book/", BookSlotView.as_view(), name="public-book-slot"),
    *router.urls,
]
