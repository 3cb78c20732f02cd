# store/views/stats.py

"""
STORE STATS

GET /api/store/stats/?store_id=<uuid>

Returns the running counters (StoreStats) next to a summary derived from
the Sale ledger. Without store_id the caller's own store is used.
"""

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from store.serializers import StoreStatsSerializer
from store.services.stats import get_stats, resolve_store_id, store_summary


class StoreStatsView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        parameters=[OpenApiParameter("store_id", str, required=False)],
        responses={200: dict},
        description="Store counters plus today / all-time sales from the ledger",
    )
    def get(self, request):
        raw = (request.query_params.get("store_id") or "").strip() or None

        store_id = resolve_store_id(store_id=raw, user_id=request.user.id)
        if store_id is None:
            return Response(
                {"error": {"code": "STORE_NOT_FOUND", "message": "No store for this user."}},
                status=status.HTTP_404_NOT_FOUND,
            )

        stats = get_stats(store_id)
        counters = (
            StoreStatsSerializer(stats).data
            if stats
            else {
                "store_id": str(store_id),
                "total_sales": 0,
                "total_revenue": 0,
                "total_profit": 0,
                "last_sale_at": None,
            }
        )

        return Response(
            {"counters": counters, "summary": store_summary(store_id)},
            status=status.HTTP_200_OK,
        )
