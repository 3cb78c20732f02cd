# store/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from store.views import StoreStatsView, StoreViewSet

router = DefaultRouter()
router.register(r"stores", StoreViewSet, basename="stores")

urlpatterns = [
    path("stats/", StoreStatsView.as_view(), name="store-stats"),
    path("", include(router.urls)),
]
