"""Catalog endpoints: product detail and the bulk lookup used by remote carts."""

from drf_spectacular.utils import OpenApiExample, extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle, UserRateThrottle

from . import selectors
from .models import Product
from .serializers import BulkLookupSerializer, ProductSerializer
from .throttling import CatalogScopedRateThrottle


class ProductViewSet(mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """Read access to active products."""

    permission_classes = [AllowAny]
    serializer_class = ProductSerializer
    throttle_scope = "catalog"
    throttle_classes = [CatalogScopedRateThrottle, UserRateThrottle, AnonRateThrottle]

    def get_queryset(self):
        return Product.objects.filter(is_active=True).order_by("id")

    @extend_schema(
        tags=["Catalog Endpoints"],
        summary="Get product",
        description="Returns a single active product by id.",
    )
    def retrieve(self, request, *args, **kwargs):
        return super().retrieve(request, *args, **kwargs)

    @extend_schema(
        tags=["Catalog Endpoints"],
        summary="Bulk product lookup",
        description=(
            "Returns the active products for the given ids. Unknown or inactive ids are "
            "omitted, so the result may be shorter than the request."
        ),
        request=BulkLookupSerializer,
        responses={200: ProductSerializer(many=True)},
        examples=[
            OpenApiExample("Request", value={"ids": [1, 2, 99]}, request_only=True),
            OpenApiExample(
                "Response",
                value=[
                    {
                        "id": 1,
                        "title": "Canvas Tote",
                        "description": "",
                        "category": "Bags",
                        "price": "10.00",
                        "stock": 5,
                        "image_url": "",
                        "is_active": True,
                    }
                ],
                response_only=True,
            ),
        ],
    )
    @action(detail=False, methods=["post"], url_path="bulk")
    def bulk(self, request):
        serializer = BulkLookupSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        products = selectors.products_by_ids(serializer.validated_data["ids"])
        return Response(ProductSerializer(products, many=True).data, status=status.HTTP_200_OK)
