"""Orders API endpoints.

Checkout and order history for customers, plus the admin lifecycle endpoints
(status transitions and tracking numbers).
"""

from catalog.services import InsufficientStock
from common.choices import OrderStatus
from django.http import Http404
from django_filters import rest_framework as filters
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema, inline_serializer
from rest_framework import generics
from rest_framework import serializers as rf_serializers
from rest_framework import status as http
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .filters import OrderFilterSet
from .models import Order
from .selectors import get_order_for_user, open_orders, orders_by_status, orders_for_user
from .serializers import (
    AdminOrderSerializer,
    OrderSerializer,
    OrderStatusUpdateSerializer,
    PlaceOrderSerializer,
    TrackingNumberSerializer,
)
from .services import (
    EmptyCart,
    InvalidStatusTransition,
    OrderError,
    compute_request_hash,
    place_order,
    set_tracking_number,
    transition_order_status,
    with_idempotency,
)

ORDER_EXAMPLE = {
    "id": 123,
    "number": "ORD-000123",
    "status": "pending",
    "total": "25.00",
    "shipping_address": "1 Main St",
    "payment_info": "Card ending 4242",
    "tracking_number": "",
    "created_at": "2025-01-01T12:00:00Z",
    "updated_at": "2025-01-01T12:00:00Z",
    "items": [
        {
            "product_id": 1,
            "product_title": "Mug",
            "product_image_url": "",
            "quantity": 3,
            "unit_price": "5.00",
            "line_total": "15.00",
        }
    ],
}

DETAIL_ERROR = inline_serializer(name="OrderError", fields={"detail": rf_serializers.CharField()})
STATUS_PARAM = OpenApiParameter(name="status", description="Order status filter", required=False, type=str)


class DefaultPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = "page_size"


class OrderListCreateView(generics.ListAPIView):
    """List the user's orders (GET) or check out the cart (POST).

    Checkout is idempotent when an `Idempotency-Key` header is provided.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = OrderSerializer
    pagination_class = DefaultPagination

    @property
    def throttle_scope(self):
        return "orders_write" if self.request.method == "POST" else "orders"

    def get_queryset(self):
        return orders_for_user(user=self.request.user, status=self.request.query_params.get("status"))

    @extend_schema(
        tags=["Orders"],
        summary="List orders",
        description="List current user's orders, newest first, with optional status filter and pagination.",
        parameters=[
            STATUS_PARAM,
            OpenApiParameter(name="page", description="Page number", required=False, type=int),
            OpenApiParameter(name="page_size", description="Items per page", required=False, type=int),
        ],
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    @extend_schema(
        tags=["Orders"],
        summary="Place order",
        description=(
            "Converts the user's cart into a pending order, taking stock for every line. "
            "Either the whole cart becomes an order or nothing changes."
        ),
        parameters=[
            OpenApiParameter(
                name="Idempotency-Key",
                location=OpenApiParameter.HEADER,
                required=False,
                description="Retries with the same key replay the first successful response",
                type=str,
            )
        ],
        request=PlaceOrderSerializer,
        responses={201: OrderSerializer, 400: DETAIL_ERROR, 409: DETAIL_ERROR},
        examples=[
            OpenApiExample("Placed", value=ORDER_EXAMPLE, response_only=True, status_codes=["201"]),
            OpenApiExample("Empty Cart", value={"detail": "Cart is empty."}, response_only=True, status_codes=["400"]),
            OpenApiExample(
                "Insufficient Stock",
                value={"detail": "Insufficient stock for product: Mug", "product_id": 1},
                response_only=True,
                status_codes=["400"],
            ),
        ],
    )
    def post(self, request):
        serializer = PlaceOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        def _handler():
            try:
                order = place_order(user=request.user, **serializer.validated_data)
            except EmptyCart:
                return {"detail": "Cart is empty."}, 400
            except InsufficientStock as exc:
                return {"detail": str(exc), "product_id": exc.product_id}, 400
            except OrderError as exc:
                return {"detail": str(exc)}, 400
            return OrderSerializer(order).data, 201

        idem_key = request.headers.get("Idempotency-Key")
        if idem_key:
            body, code = with_idempotency(
                key=idem_key,
                user=request.user,
                path=str(request.path),
                method=str(request.method),
                request_hash=compute_request_hash(getattr(request, "data", None)),
                handler=_handler,
            )
            return Response(body, status=code)

        body, code = _handler()
        return Response(body, status=code)


class OrderDetailView(APIView):
    """Retrieve a single order owned by the authenticated user."""

    permission_classes = [IsAuthenticated]
    throttle_scope = "orders"

    @extend_schema(
        tags=["Orders"],
        summary="Get order detail",
        responses={200: OrderSerializer, 404: DETAIL_ERROR},
        examples=[OpenApiExample("Order", value=ORDER_EXAMPLE)],
    )
    def get(self, request, order_id: int):
        order = get_order_for_user(user=request.user, order_id=order_id)
        if order is None:
            raise Http404("Not found.")
        return Response(OrderSerializer(order).data, status=http.HTTP_200_OK)


class AdminOrderListView(generics.ListAPIView):
    """All orders for staff, filterable by status, number, user and date range."""

    permission_classes = [IsAdminUser]
    serializer_class = AdminOrderSerializer
    pagination_class = DefaultPagination
    filter_backends = [filters.DjangoFilterBackend]
    filterset_class = OrderFilterSet
    throttle_scope = "orders"

    def get_queryset(self):
        status = self.request.query_params.get("status")
        if status and status not in OrderStatus.values:
            return Order.objects.none()
        return orders_by_status(status)

    @extend_schema(
        tags=["Orders Admin"],
        summary="List all orders",
        parameters=[
            STATUS_PARAM,
            OpenApiParameter(name="number", description="Order number exact match", required=False, type=str),
            OpenApiParameter(name="user", description="Owner user id", required=False, type=int),
            OpenApiParameter(name="start", description="Created at >= start (ISO)", required=False, type=str),
            OpenApiParameter(name="end", description="Created at <= end (ISO)", required=False, type=str),
        ],
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)


class AdminOpenOrdersView(generics.ListAPIView):
    """Orders that still need fulfilment."""

    permission_classes = [IsAdminUser]
    serializer_class = AdminOrderSerializer
    pagination_class = DefaultPagination
    throttle_scope = "orders"

    def get_queryset(self):
        return open_orders()

    @extend_schema(tags=["Orders Admin"], summary="List open orders")
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)


def _get_order_or_404(order_id) -> Order:
    try:
        return Order.objects.get(pk=order_id)
    except Order.DoesNotExist:
        raise Http404("Not found.")


class AdminOrderStatusView(APIView):
    """Move an order through its lifecycle."""

    permission_classes = [IsAdminUser]
    throttle_scope = "orders_write"

    @extend_schema(
        tags=["Orders Admin"],
        summary="Update order status",
        description=(
            "Allowed: pending → confirmed | cancelled, confirmed → shipped, shipped → delivered. "
            "Re-sending the current status is a no-op."
        ),
        request=OrderStatusUpdateSerializer,
        responses={200: AdminOrderSerializer, 400: DETAIL_ERROR, 404: DETAIL_ERROR},
        examples=[
            OpenApiExample("Confirm", value={"status": "confirmed"}, request_only=True),
            OpenApiExample(
                "Invalid Transition",
                value={"detail": "Cannot move order from delivered to pending"},
                response_only=True,
                status_codes=["400"],
            ),
        ],
    )
    def post(self, request, order_id: int):
        order = _get_order_or_404(order_id)
        serializer = OrderStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            order = transition_order_status(order=order, status=serializer.validated_data["status"])
        except InvalidStatusTransition as exc:
            return Response({"detail": str(exc)}, status=http.HTTP_400_BAD_REQUEST)
        return Response(AdminOrderSerializer(order).data, status=http.HTTP_200_OK)


class AdminOrderTrackingView(APIView):
    """Attach a carrier tracking number to an order."""

    permission_classes = [IsAdminUser]
    throttle_scope = "orders_write"

    @extend_schema(
        tags=["Orders Admin"],
        summary="Set tracking number",
        request=TrackingNumberSerializer,
        responses={200: AdminOrderSerializer, 404: DETAIL_ERROR},
        examples=[OpenApiExample("Tracking", value={"tracking_number": "TRK123456789"}, request_only=True)],
    )
    def post(self, request, order_id: int):
        order = _get_order_or_404(order_id)
        serializer = TrackingNumberSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = set_tracking_number(order=order, tracking_number=serializer.validated_data["tracking_number"])
        return Response(AdminOrderSerializer(order).data, status=http.HTTP_200_OK)
