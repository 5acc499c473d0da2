"""Email utilities for the orders app.

Uses Django's email backend, with links composed from FRONTEND_URL.
"""

from django.conf import settings
from django.core.mail import send_mail


def send_order_confirmed_email(order) -> None:
    """Tell the customer their order was confirmed.

    Includes a link to the order on the frontend when ``FRONTEND_URL`` is set.
    No-ops if the user has no email address.
    """
    to_email = getattr(order.user, "email", None)
    if not to_email:
        return

    reference = order.number or order.id
    frontend = getattr(settings, "FRONTEND_URL", "")
    order_url = f"{frontend.rstrip('/')}/orders/{order.id}" if frontend else ""

    lines = [
        "Thank you for your purchase!",
        "",
        f"Order: {reference}",
        f"Status: {order.status}",
        f"Total: {order.total}",
        f"Ship to: {order.shipping_address}",
    ]
    if order_url:
        lines += ["", f"You can view your order here: {order_url}"]

    send_mail(
        f"Your order {reference} is confirmed",
        "\n".join(lines) + "\n",
        getattr(settings, "DEFAULT_FROM_EMAIL", None),
        [to_email],
        fail_silently=True,
    )
