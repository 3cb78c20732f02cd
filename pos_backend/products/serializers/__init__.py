# products/serializers/__init__.py

from .product import ProductSerializer

__all__ = [
    "ProductSerializer",
]
