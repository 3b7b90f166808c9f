"""Order domain constants.

Canonical status values, the alias table used by the status normalizer,
and display labels shared by templates and push payloads.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pendente"
    CONFIRMED = "confirmed", "Confirmado"
    PREPARING = "preparing", "Em Preparo"
    READY = "ready", "Pronto"
    IN_DELIVERY = "in_delivery", "Saiu para Entrega"
    DELIVERED = "delivered", "Entregue"
    CANCELLED = "cancelled", "Cancelado"


class DeliveryType(models.TextChoices):
    DELIVERY = "delivery", "Entrega"
    PICKUP = "pickup", "Retirada"


class PaymentMethod(models.TextChoices):
    CASH = "cash", "Dinheiro"
    CARD = "card", "Cartão"
    PIX = "pix", "PIX"


TERMINAL_STATES: frozenset[str] = frozenset(
    {OrderStatus.DELIVERED, OrderStatus.CANCELLED}
)

# Exact, case-sensitive.  Several localized labels map onto one key.
STATUS_ALIASES: dict[str, OrderStatus] = {
    # pending
    "pendente": OrderStatus.PENDING,
    "aguardando": OrderStatus.PENDING,
    "novo": OrderStatus.PENDING,
    "em_aberto": OrderStatus.PENDING,
    "recebido": OrderStatus.PENDING,
    # confirmed
    "confirmado": OrderStatus.CONFIRMED,
    "aceito": OrderStatus.CONFIRMED,
    "aprovado": OrderStatus.CONFIRMED,
    # preparing
    "preparando": OrderStatus.PREPARING,
    "em_preparo": OrderStatus.PREPARING,
    "em_preparação": OrderStatus.PREPARING,
    "em_preparacao": OrderStatus.PREPARING,
    "separação": OrderStatus.PREPARING,
    "separacao": OrderStatus.PREPARING,
    "separando": OrderStatus.PREPARING,
    # ready
    "pronto": OrderStatus.READY,
    "pronto_para_retirada": OrderStatus.READY,
    "aguardando_retirada": OrderStatus.READY,
    # in_delivery
    "a_caminho": OrderStatus.IN_DELIVERY,
    "saiu_para_entrega": OrderStatus.IN_DELIVERY,
    "em_entrega": OrderStatus.IN_DELIVERY,
    "em_rota": OrderStatus.IN_DELIVERY,
    "out_for_delivery": OrderStatus.IN_DELIVERY,
    # delivered
    "entregue": OrderStatus.DELIVERED,
    "concluído": OrderStatus.DELIVERED,
    "concluido": OrderStatus.DELIVERED,
    "finalizado": OrderStatus.DELIVERED,
    "retirado": OrderStatus.DELIVERED,
    # cancelled
    "cancelado": OrderStatus.CANCELLED,
    "cancelada": OrderStatus.CANCELLED,
    "recusado": OrderStatus.CANCELLED,
    "canceled": OrderStatus.CANCELLED,
}

# Used in push bodies and as the fallback label when a store has no config.
STATUS_DISPLAY: dict[str, str] = {
    OrderStatus.PENDING: "⏳ Pendente",
    OrderStatus.CONFIRMED: "✅ Confirmado",
    OrderStatus.PREPARING: "👨‍🍳 Em Preparo",
    OrderStatus.READY: "✅ Pronto",
    OrderStatus.IN_DELIVERY: "🚗 Saiu para Entrega",
    OrderStatus.DELIVERED: "🎉 Entregue",
    OrderStatus.CANCELLED: "❌ Cancelado",
}

ORDER_NUMBER_MAX_RETRIES = 5
