from __future__ import annotations

import random
import uuid
from datetime import timedelta
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.utils import timezone

from modules.orders.constants import DeliveryType, OrderStatus, PaymentMethod
from modules.orders.models import Order, OrderItem
from modules.orders.suppression import notifications_suppressed
from modules.stores.models import OrderStatusConfig, Store, StoreEmployee
from modules.stores.permissions import merge_missing_defaults, project_status_permissions

STATUS_CATALOG = [
    (OrderStatus.PENDING, "Pendente", "#f59e0b", ""),
    (
        OrderStatus.CONFIRMED,
        "Confirmado",
        "#3b82f6",
        "Olá {{customer_name}}! Seu pedido {{order_number}} foi confirmado.\n\n"
        "{{items}}\n\nTotal: {{total}}",
    ),
    (
        OrderStatus.PREPARING,
        "Em Preparo",
        "#8b5cf6",
        "{{customer_name}}, seu pedido {{order_number}} está sendo preparado.",
    ),
    (
        OrderStatus.READY,
        "Pronto",
        "#10b981",
        "Seu pedido {{order_number}} está pronto!"
        "{{#if_pickup}} Retire em {{store_address}}.{{/if_pickup}}",
    ),
    (
        OrderStatus.IN_DELIVERY,
        "Saiu para Entrega",
        "#06b6d4",
        "Seu pedido {{order_number}} saiu para entrega.\nEndereço: {{delivery_address}}",
    ),
    (OrderStatus.DELIVERED, "Entregue", "#22c55e", "Pedido entregue. Obrigado, {{customer_name}}!"),
    (OrderStatus.CANCELLED, "Cancelado", "#ef4444", "Seu pedido {{order_number}} foi cancelado."),
]

MENU = [
    ("Pizza Calabresa", Decimal("49.90")),
    ("Pizza Margherita", Decimal("45.90")),
    ("Hambúrguer Artesanal", Decimal("32.00")),
    ("Batata Frita", Decimal("18.50")),
    ("Refrigerante 2L", Decimal("12.00")),
    ("Açaí 500ml", Decimal("22.90")),
]

CUSTOMERS = [
    ("Ana Souza", "11987654321"),
    ("Bruno Lima", "21998765432"),
    ("Carla Mendes", "31976543210"),
    ("Daniel Costa", "5541988887777"),
    ("Fernanda Rocha", "48991234567"),
]


class Command(BaseCommand):
    help = "Seed database with a demo store, its status catalogue and orders."

    def add_arguments(self, parser):
        parser.add_argument("--owner", type=uuid.UUID, default=None)
        parser.add_argument("--orders", type=int, default=20)

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        store = self._seed_store(options["owner"] or uuid.uuid4())
        configs = self._seed_status_configs(store)
        employee = self._seed_employee(store)
        orders_created = self._seed_orders(store, options["orders"])

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"store={store.id}, "
                f"owner={store.owner_id}, "
                f"statuses={len(configs)}, "
                f"employee={employee.user_id}, "
                f"orders={orders_created}"
            )
        )

    def _seed_store(self, owner_id: uuid.UUID) -> Store:
        store, _ = Store.objects.get_or_create(
            owner_id=owner_id,
            name="Pizzaria Demo",
            defaults={
                "phone": "11 3333-4444",
                "address": "Rua das Flores, 100 - Centro",
                "pickup_address": "Rua das Flores, 100 (balcão)",
            },
        )
        return store

    def _seed_status_configs(self, store: Store) -> list[OrderStatusConfig]:
        self.stdout.write("Creating status catalogue...")
        configs = []
        for position, (status, label, color, message) in enumerate(STATUS_CATALOG):
            config, _ = OrderStatusConfig.objects.get_or_create(
                store=store,
                status_key=status,
                defaults={
                    "status_label": label,
                    "status_color": color,
                    "display_order": position,
                    "whatsapp_message": message,
                },
            )
            configs.append(config)
        self.stdout.write(self.style.SUCCESS("Creating status catalogue... Done!"))
        return configs

    def _seed_employee(self, store: Store) -> StoreEmployee:
        employee, created = StoreEmployee.objects.get_or_create(
            store=store,
            email="atendente@example.com",
            defaults={"user_id": uuid.uuid4(), "name": "Atendente Demo"},
        )
        if created:
            items = project_status_permissions(store.status_configs.all())
            employee.permissions, _ = merge_missing_defaults(employee.permissions, items)
            employee.save(update_fields=["permissions", "updated_at"])
        return employee

    def _seed_orders(self, store: Store, count: int) -> int:
        self.stdout.write("Creating orders...")
        statuses = list(OrderStatus)
        weights = [0.25, 0.15, 0.15, 0.1, 0.1, 0.15, 0.1]

        created = 0
        # Seeded orders must never message real phone numbers.
        with notifications_suppressed():
            for _ in range(count):
                name, phone = random.choice(CUSTOMERS)
                delivery_type = random.choice(list(DeliveryType))
                order = Order.objects.create(
                    store=store,
                    status=random.choices(statuses, weights=weights, k=1)[0],
                    customer_name=name,
                    customer_phone=phone,
                    delivery_type=delivery_type,
                    payment_method=random.choice(list(PaymentMethod)),
                    delivery_fee=(
                        Decimal("7.00")
                        if delivery_type == DeliveryType.DELIVERY
                        else Decimal("0.00")
                    ),
                    delivery_street="Av. Brasil",
                    delivery_number=str(random.randint(1, 999)),
                    delivery_neighborhood="Centro",
                    delivery_city="São Paulo",
                )

                subtotal = Decimal("0.00")
                for product_name, price in random.sample(MENU, k=random.randint(1, 3)):
                    item = OrderItem.objects.create(
                        order=order,
                        product_name=product_name,
                        quantity=random.randint(1, 3),
                        unit_price=price,
                    )
                    subtotal += item.subtotal

                Order.objects.filter(id=order.id).update(
                    subtotal=subtotal,
                    total=subtotal + order.delivery_fee,
                    created_at=timezone.now() - timedelta(days=random.randint(0, 30)),
                )
                created += 1

        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return created
