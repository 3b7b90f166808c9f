"""Keep employee permission documents in step with the status catalogue."""

from __future__ import annotations

import structlog
from django.db.models.signals import post_save
from django.dispatch import receiver

from modules.stores.models import OrderStatusConfig, StoreEmployee
from modules.stores.permissions import merge_missing_defaults, project_status_permissions

logger = structlog.get_logger(__name__)


@receiver(post_save, sender=OrderStatusConfig)
def _grant_default_permission_for_new_status(
    sender, instance: OrderStatusConfig, created: bool, **kwargs
) -> None:
    if not created or kwargs.get("raw"):
        return

    items = project_status_permissions([instance])
    updated = 0
    for employee in StoreEmployee.objects.filter(store_id=instance.store_id):
        permissions, changed = merge_missing_defaults(employee.permissions, items)
        if changed:
            employee.permissions = permissions
            employee.save(update_fields=["permissions"])
            updated += 1

    if updated:
        logger.info(
            "store.employee_permissions_synced",
            store_id=str(instance.store_id),
            status_key=instance.status_key,
            employees=updated,
        )
