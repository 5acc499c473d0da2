"""Serializers for the catalog app."""

from rest_framework import serializers

from .models import Product


class ProductSerializer(serializers.ModelSerializer):
    class Meta:
        model = Product
        fields = ["id", "title", "description", "category", "price", "stock", "image_url", "is_active"]
        read_only_fields = fields


class BulkLookupSerializer(serializers.Serializer):
    """Input for the bulk lookup endpoint: a non-empty list of product ids."""

    ids = serializers.ListField(child=serializers.IntegerField(min_value=1), allow_empty=False, max_length=500)
