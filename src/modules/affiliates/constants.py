from django.db import models


class CommissionType(models.TextChoices):
    PERCENTAGE = "percentage", "Percentual"
    FIXED = "fixed", "Valor fixo"


class EarningStatus(models.TextChoices):
    PENDING = "pending", "Pendente"
    APPROVED = "approved", "Aprovado"
    PAID = "paid", "Pago"
    CANCELLED = "cancelled", "Cancelado"


EARNING_TRANSITIONS: dict[str, set[str]] = {
    EarningStatus.PENDING: {EarningStatus.APPROVED, EarningStatus.CANCELLED},
    EarningStatus.APPROVED: {EarningStatus.PAID, EarningStatus.CANCELLED},
    EarningStatus.PAID: set(),
    EarningStatus.CANCELLED: set(),
}
