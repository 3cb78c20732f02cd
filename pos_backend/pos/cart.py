"""
PATH: pos/cart.py

CART STATE MACHINE

The cashier's working set of line items. Pure data + a pure reducer:

    reduce(state, action) -> new state

Actions:
- AddItem(product, live_stock)               +1 of a product (append if new)
- RemoveItem(product_id)                     drop the line (no-op if absent)
- SetQuantity(product_id, quantity, live_stock)
                                             replace quantity; <= 0 removes
- ClearCart()                                empty the cart

Rules:
- At most one line per product_id; lines keep insertion order.
- Add / SetQuantity never go above the live stock passed in. The state is
  left unchanged and CartCapacityError is raised instead.
- The cart is never persisted to business tables.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Optional, Tuple, Union


# =====================================================
# STATE
# =====================================================

@dataclass(frozen=True)
class ProductRef:
    product_id: str
    name: str
    unit_price: int

    @classmethod
    def from_product(cls, product) -> "ProductRef":
        return cls(
            product_id=str(product.id),
            name=product.name,
            unit_price=int(product.unit_price),
        )


@dataclass(frozen=True)
class LineItem:
    product_id: str
    name: str
    unit_price: int
    quantity: int
    available_stock: int

    @property
    def subtotal(self) -> int:
        return self.unit_price * self.quantity

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "unit_price": self.unit_price,
            "quantity": self.quantity,
            "available_stock": self.available_stock,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LineItem":
        return cls(
            product_id=str(data["product_id"]),
            name=str(data["name"]),
            unit_price=int(data["unit_price"]),
            quantity=int(data["quantity"]),
            available_stock=int(data.get("available_stock", 0)),
        )


@dataclass(frozen=True)
class Cart:
    items: Tuple[LineItem, ...] = ()

    @property
    def total_price(self) -> int:
        return sum(i.unit_price * i.quantity for i in self.items)

    @property
    def total_items(self) -> int:
        return sum(i.quantity for i in self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items

    def get(self, product_id) -> Optional[LineItem]:
        pid = str(product_id)
        for item in self.items:
            if item.product_id == pid:
                return item
        return None

    def to_list(self) -> list:
        return [i.to_dict() for i in self.items]

    @classmethod
    def from_list(cls, rows: Iterable[dict]) -> "Cart":
        return cls(items=tuple(LineItem.from_dict(r) for r in rows or ()))


EMPTY_CART = Cart()


# =====================================================
# ACTIONS
# =====================================================

@dataclass(frozen=True)
class AddItem:
    product: ProductRef
    live_stock: int


@dataclass(frozen=True)
class RemoveItem:
    product_id: str


@dataclass(frozen=True)
class SetQuantity:
    product_id: str
    quantity: int
    live_stock: int


@dataclass(frozen=True)
class ClearCart:
    pass


CartAction = Union[AddItem, RemoveItem, SetQuantity, ClearCart]


class CartCapacityError(Exception):
    def __init__(self, *, product_id: str, name: str, requested: int, available: int):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Only {available} of {name} in stock (requested {requested})."
        )


# =====================================================
# REDUCER
# =====================================================

def _check_capacity(*, product_id: str, name: str, quantity: int, live_stock: int) -> None:
    if quantity > int(live_stock):
        raise CartCapacityError(
            product_id=product_id,
            name=name,
            requested=quantity,
            available=int(live_stock),
        )


def reduce(state: Cart, action: CartAction) -> Cart:
    if isinstance(action, AddItem):
        product = action.product
        existing = state.get(product.product_id)
        quantity = (existing.quantity if existing else 0) + 1

        _check_capacity(
            product_id=product.product_id,
            name=product.name,
            quantity=quantity,
            live_stock=action.live_stock,
        )

        if existing is None:
            line = LineItem(
                product_id=product.product_id,
                name=product.name,
                unit_price=int(product.unit_price),
                quantity=1,
                available_stock=int(action.live_stock),
            )
            return Cart(items=state.items + (line,))

        return Cart(
            items=tuple(
                replace(i, quantity=quantity, available_stock=int(action.live_stock))
                if i.product_id == product.product_id
                else i
                for i in state.items
            )
        )

    if isinstance(action, RemoveItem):
        pid = str(action.product_id)
        return Cart(items=tuple(i for i in state.items if i.product_id != pid))

    if isinstance(action, SetQuantity):
        pid = str(action.product_id)
        quantity = int(action.quantity)

        if quantity <= 0:
            return reduce(state, RemoveItem(product_id=pid))

        existing = state.get(pid)
        if existing is None:
            return state

        _check_capacity(
            product_id=pid,
            name=existing.name,
            quantity=quantity,
            live_stock=action.live_stock,
        )

        return Cart(
            items=tuple(
                replace(i, quantity=quantity, available_stock=int(action.live_stock))
                if i.product_id == pid
                else i
                for i in state.items
            )
        )

    if isinstance(action, ClearCart):
        return EMPTY_CART

    raise TypeError(f"Unknown cart action: {action!r}")


# =====================================================
# STORE
# =====================================================

class CartStore:
    """
    Holds the current cart and applies actions in the order they arrive.
    """

    def __init__(self, state: Cart = EMPTY_CART):
        self._state = state

    @property
    def state(self) -> Cart:
        return self._state

    def dispatch(self, action: CartAction) -> Cart:
        self._state = reduce(self._state, action)
        self._on_change(self._state)
        return self._state

    def _on_change(self, state: Cart) -> None:
        pass
