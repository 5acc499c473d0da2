from decimal import Decimal

import factory
from cart.tests.factories import UserFactory
from factory.django import DjangoModelFactory
from orders.models import Order, OrderItem


class OrderFactory(DjangoModelFactory):
    class Meta:
        model = Order

    user = factory.SubFactory(UserFactory)
    number = factory.Sequence(lambda n: f"ORD-{n + 900000:06d}")
    total = factory.LazyFunction(lambda: Decimal("10.00"))
    shipping_address = factory.Faker("address")
    status = Order.STATUS_PENDING


class OrderItemFactory(DjangoModelFactory):
    class Meta:
        model = OrderItem

    order = factory.SubFactory(OrderFactory)
    product_id = factory.Sequence(lambda n: n + 1)
    product_title = factory.Faker("sentence", nb_words=2)
    quantity = 1
    unit_price = factory.LazyFunction(lambda: Decimal("10.00"))
    line_total = factory.LazyAttribute(lambda o: o.unit_price * o.quantity)
