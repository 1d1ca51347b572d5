"""
Delete capture for tracked models.

Django sends ``pre_delete``/``post_delete`` from inside the deletion
transaction, for single deletes, queryset deletes and ORM cascades alike,
so the delete record commits or rolls back together with the row.

The collector nulls ``SET_NULL`` references with raw updates between the
two signals. Tracked rows it touches are snapshotted in ``pre_delete`` and
recorded as updates in ``post_delete``.
"""
import logging
from django.db.models import SET_NULL
from django.db.models.signals import pre_delete, post_delete
from django.dispatch import receiver

from apps.audit.models import AuditedModel, AuditLog

logger = logging.getLogger(__name__)


def set_null_relations(model):
    """Reverse relations of ``model`` whose tracked rows are nulled on delete."""
    return [
        related for related in model._meta.related_objects
        if getattr(related, 'on_delete', None) is SET_NULL
        and issubclass(related.related_model, AuditedModel)
    ]


@receiver(pre_delete)
def snapshot_before_delete(sender, instance, using, **kwargs):
    """Re-read the stored row so the record reflects the state at deletion."""
    from apps.audit.services import AuditRecorder

    detached = []
    for related in set_null_relations(sender):
        rows = related.related_model._base_manager.using(using).filter(
            **{related.field.name: instance}
        )
        befores = {row.pk: AuditRecorder.snapshot(row) for row in rows}
        if befores:
            detached.append((related.related_model, befores))
    if detached:
        instance._audit_detached = detached

    if not isinstance(instance, AuditedModel):
        return

    stored = sender._base_manager.using(using).filter(pk=instance.pk).first()
    instance._audit_before_delete = AuditRecorder.snapshot(stored or instance)


@receiver(post_delete)
def record_delete(sender, instance, using, **kwargs):
    """Write the delete record for a tracked model and updates for rows it detached."""
    from apps.audit.services import AuditRecorder

    # Rows deleted by the same collector are gone and get their own delete record
    for model, befores in getattr(instance, '_audit_detached', ()):
        for row in model._base_manager.using(using).filter(pk__in=list(befores)):
            AuditRecorder.record_change(row, before=befores[row.pk], using=using)

    if not isinstance(instance, AuditedModel):
        return

    before = getattr(instance, '_audit_before_delete', None)
    if before is None:
        before = AuditRecorder.snapshot(instance)

    AuditRecorder.record(
        action=AuditLog.ACTION_DELETE,
        table_name=instance.audit_table_name(),
        record_id=instance.pk,
        old_values=before,
        new_values=None,
        using=using,
    )
