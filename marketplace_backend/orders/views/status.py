# orders/views/status.py

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from orders.serializers import OrderSerializer, OrderStatusCommandSerializer
from orders.services.exceptions import (
    InvalidArgumentError,
    InvalidTransitionError,
    OrderNotFoundError,
    OrderStatusError,
    StoreConflictError,
    StoreUnavailableError,
    TransitionForbiddenError,
)
from orders.services.reconciliation import transition_order_status_with_retry
from permissions.roles import get_user_role


# ======================================================
# API ERROR NORMALIZATION
# ======================================================

ERROR_HTTP_STATUS = {
    OrderNotFoundError: status.HTTP_404_NOT_FOUND,
    TransitionForbiddenError: status.HTTP_403_FORBIDDEN,
    InvalidArgumentError: status.HTTP_400_BAD_REQUEST,
    InvalidTransitionError: status.HTTP_400_BAD_REQUEST,
    StoreConflictError: status.HTTP_409_CONFLICT,
    StoreUnavailableError: status.HTTP_503_SERVICE_UNAVAILABLE,
}

RETRY_AFTER_SECONDS = "1"


def error_response(*, code: str, message: str, http_status: int):
    """
    Canonical API error response.
    """
    return Response(
        {"error": {"code": code, "message": message}},
        status=http_status,
    )


def order_error_response(exc: OrderStatusError):
    http_status = ERROR_HTTP_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
    response = error_response(code=exc.code, message=str(exc), http_status=http_status)

    if exc.retryable:
        response["Retry-After"] = RETRY_AFTER_SECONDS
    return response


# ======================================================
# ORDER STATUS COMMAND
# ======================================================

class OrderStatusView(APIView):
    """
    PUT/PATCH /api/orders/<uuid>/status/   body: {"status": "<target>"}

    Any authenticated caller may attempt the command; the reconciliation
    engine decides ownership, so every refusal uses the same error envelope.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = OrderStatusCommandSerializer

    @extend_schema(
        request=OrderStatusCommandSerializer,
        responses={
            200: OrderSerializer,
            400: OpenApiResponse(description="INVALID_ARGUMENT / INVALID_TRANSITION"),
            403: OpenApiResponse(description="FORBIDDEN"),
            404: OpenApiResponse(description="NOT_FOUND"),
            409: OpenApiResponse(description="STORE_CONFLICT (retry)"),
            503: OpenApiResponse(description="STORE_UNAVAILABLE (retry)"),
        },
        description="Move an order through its lifecycle and reconcile earnings.",
    )
    def put(self, request, order_id):
        command = OrderStatusCommandSerializer(data=request.data)
        if not command.is_valid():
            return error_response(
                code=InvalidArgumentError.code,
                message="Body must contain a non-empty 'status' string.",
                http_status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            order = transition_order_status_with_retry(
                order_id=order_id,
                actor_id=request.user.pk,
                actor_role=get_user_role(request.user),
                target_status=command.validated_data["status"],
            )
        except OrderStatusError as exc:
            return order_error_response(exc)

        return Response(OrderSerializer(order).data, status=status.HTTP_200_OK)

    @extend_schema(
        request=OrderStatusCommandSerializer,
        responses={200: OrderSerializer},
        description="Same as PUT.",
    )
    def patch(self, request, order_id):
        return self.put(request, order_id)
