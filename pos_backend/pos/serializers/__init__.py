from .cart import CartSerializer, LineItemSerializer

__all__ = ["CartSerializer", "LineItemSerializer"]
