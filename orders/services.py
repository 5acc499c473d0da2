"""Order services: checkout, status lifecycle and idempotent request handling."""

import hashlib
import json
import logging
from datetime import timedelta
from decimal import Decimal
from typing import Callable, Optional, Tuple

from cart.models import Cart, CartItem
from cart.services import clear_cart
from catalog.services import decrement_stock, ensure_stock
from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from .emails import send_order_confirmed_email
from .models import IdempotencyKey, Order, OrderItem

logger = logging.getLogger("smartcart.orders")


class OrderError(Exception):
    """Raised for order placement and lifecycle failures."""


class EmptyCart(OrderError):
    def __init__(self, user_id=None):
        self.user_id = user_id
        super().__init__("Cart is empty.")


class InvalidStatusTransition(OrderError):
    def __init__(self, current, requested):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move order from {current} to {requested}")


ALLOWED_TRANSITIONS = {
    Order.STATUS_PENDING: {Order.STATUS_CONFIRMED, Order.STATUS_CANCELLED},
    Order.STATUS_CONFIRMED: {Order.STATUS_SHIPPED},
    Order.STATUS_SHIPPED: {Order.STATUS_DELIVERED},
    Order.STATUS_DELIVERED: set(),
    Order.STATUS_CANCELLED: set(),
}

OPEN_STATUSES = (Order.STATUS_PENDING, Order.STATUS_CONFIRMED)


@transaction.atomic
def place_order(*, user, shipping_address: str, payment_info: Optional[str] = None) -> Order:
    """Turn the user's cart into a pending order.

    Locks the cart, checks stock for every line, writes the order with lines
    copied from the cart snapshots, takes stock with a conditional UPDATE per
    line and clears the cart. Everything happens in one transaction: any
    ``InsufficientStock`` raised along the way leaves no order, no stock
    movement and the cart untouched.
    """

    if not shipping_address or not str(shipping_address).strip():
        raise OrderError("Shipping address is required")

    cart = Cart.objects.select_for_update().filter(user=user).first()
    lines = list(CartItem.objects.filter(cart=cart).order_by("id")) if cart is not None else []
    if not lines:
        raise EmptyCart(getattr(user, "id", None))

    ensure_stock((line.product_id, line.quantity, line.product_title) for line in lines)

    now = timezone.now()
    total = sum((line.unit_price * line.quantity for line in lines), Decimal("0.00"))
    order = Order.objects.create(
        user=user,
        total=total,
        shipping_address=str(shipping_address).strip(),
        payment_info=payment_info or "",
        status=Order.STATUS_PENDING,
        created_at=now,
        updated_at=now,
    )
    OrderItem.objects.bulk_create(
        [
            OrderItem(
                order=order,
                product_id=line.product_id,
                product_title=line.product_title,
                product_image_url=line.product_image_url,
                quantity=line.quantity,
                unit_price=line.unit_price,
                line_total=line.unit_price * line.quantity,
            )
            for line in lines
        ]
    )
    order.number = f"ORD-{int(order.id):06d}"
    order.save(update_fields=["number"])

    # Product rows are always locked in id order.
    for line in sorted(lines, key=lambda l: l.product_id):
        decrement_stock(product_id=line.product_id, quantity=line.quantity, title=line.product_title)

    clear_cart(user=user)

    logger.info(
        "order.placed",
        extra={
            "event": "order.placed",
            "order_id": order.id,
            "order_number": order.number,
            "user_id": getattr(user, "id", None),
            "cart_id": cart.id,
            "total": str(order.total),
            "lines": len(lines),
        },
    )
    return order


def _notify_confirmed(order: Order) -> None:
    try:
        send_order_confirmed_email(order)
    except Exception:
        logger.warning(
            "order.email_failed",
            exc_info=True,
            extra={"event": "order.email_failed", "order_id": order.id},
        )


@transaction.atomic
def transition_order_status(*, order: Order, status: str) -> Order:
    """Move an order along its lifecycle.

    Setting the current status again is a no-op. Any edge not in
    ``ALLOWED_TRANSITIONS`` raises ``InvalidStatusTransition``. Confirming an
    order emails the customer once the transaction commits; a failed send is
    only logged.
    """

    locked = Order.objects.select_for_update().get(pk=order.pk)
    prev = locked.status
    if status == prev:
        return locked
    if status not in ALLOWED_TRANSITIONS.get(prev, set()):
        raise InvalidStatusTransition(prev, status)

    locked.status = status
    locked.updated_at = timezone.now()
    locked.save(update_fields=["status", "updated_at"])
    logger.info(
        "order.status_changed",
        extra={
            "event": "order.status_changed",
            "order_id": locked.id,
            "user_id": locked.user_id,
            "status_from": prev,
            "status_to": status,
        },
    )
    if status == Order.STATUS_CONFIRMED:
        transaction.on_commit(lambda: _notify_confirmed(locked))
    return locked


@transaction.atomic
def set_tracking_number(*, order: Order, tracking_number: str) -> Order:
    """Set the carrier tracking number; nothing else on the order changes."""

    locked = Order.objects.select_for_update().get(pk=order.pk)
    locked.tracking_number = str(tracking_number).strip()
    locked.updated_at = timezone.now()
    locked.save(update_fields=["tracking_number", "updated_at"])
    logger.info(
        "order.tracking_updated",
        extra={
            "event": "order.tracking_updated",
            "order_id": locked.id,
            "user_id": locked.user_id,
            "tracking_number": locked.tracking_number,
        },
    )
    return locked


def _json_safe(value):
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, dict):
        return {k: _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    return value


def with_idempotency(
    *,
    key: str,
    user,
    path: str,
    method: str,
    handler: Callable[[], Tuple[dict, int]],
    request_hash: Optional[str] = None,
) -> Tuple[dict, int]:
    """Run handler idempotently and persist its response for the given key and scope.

    - Scope is derived from the caller: for authenticated users, "user:<id>"; otherwise "anon".
    - A stored successful response is replayed as-is.
    - A stored record whose ``request_hash`` differs from the provided one returns 409.
    - A record without a stored response returns 409 to indicate the request is in progress.
    - Failed responses (and exceptions) release the key so the client may retry.
    """

    scope = f"user:{getattr(user, 'id', None)}" if getattr(user, "id", None) else "anon"
    method = str(method).upper()
    path = str(path)
    now = timezone.now()
    ttl = timedelta(hours=int(getattr(settings, "IDEMPOTENCY_TTL_HOURS", 24)))

    IdempotencyKey.objects.filter(key=key, scope=scope, path=path, method=method, expires_at__lt=now).delete()
    try:
        with transaction.atomic():
            idem = IdempotencyKey.objects.create(
                key=key,
                user=user if getattr(user, "id", None) else None,
                scope=scope,
                path=path,
                method=method,
                request_hash=request_hash,
                created_at=now,
                updated_at=now,
                expires_at=now + ttl,
            )
    except IntegrityError:
        idem = IdempotencyKey.objects.get(key=key, scope=scope, path=path, method=method)
        if idem.request_hash and request_hash and idem.request_hash != request_hash:
            return {"detail": "Idempotency key reused with different request payload"}, 409
        if idem.response_json is not None and idem.response_code is not None:
            logger.info(
                "idempotency.replayed",
                extra={"event": "idempotency.replayed", "scope": scope, "path": path, "method": method},
            )
            return idem.response_json, int(idem.response_code)
        return {"detail": "Request in progress"}, 409

    try:
        body, code = handler()
    except Exception:
        IdempotencyKey.objects.filter(id=idem.id).delete()
        raise

    if code >= 400:
        IdempotencyKey.objects.filter(id=idem.id).delete()
        return body, code

    IdempotencyKey.objects.filter(id=idem.id).update(
        response_json=_json_safe(body), response_code=code, updated_at=timezone.now()
    )
    return body, code


def compute_request_hash(data: Optional[dict]) -> Optional[str]:
    """Compute a canonical SHA256 hash of the request body.

    Uses sorted keys JSON representation to stabilize the hash across equivalent payloads.
    Returns None when data is falsy or not JSON serializable.
    """
    if not data:
        return None
    try:
        payload = json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)
    except (TypeError, ValueError):
        return None
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()
