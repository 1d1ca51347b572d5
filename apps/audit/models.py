"""
Audit models.

Implements:
- AuditLog: immutable record of one create, update or delete
- AuditedModel: abstract base whose writes produce audit records in the
  same transaction as the mutation
"""
import uuid
import logging
from django.db import models, router, transaction
from django.utils import timezone
from apps.core.models import BaseModel

logger = logging.getLogger(__name__)


class AuditLogQuerySet(models.QuerySet):
    """QuerySet that refuses bulk rewrites of the audit trail."""

    def update(self, **kwargs):
        raise ValueError("Audit records are append-only and cannot be updated")

    def delete(self):
        raise ValueError("Audit records are append-only and cannot be deleted")

    def by_action(self, action):
        """Get audit logs for a specific action."""
        return self.filter(action=action)

    def by_table(self, table_name, record_id=None):
        """Get audit logs for a table and optionally one record."""
        qs = self.filter(table_name=table_name)
        if record_id is not None:
            qs = qs.filter(record_id=str(record_id))
        return qs

    def by_request(self, request_id):
        """Get all audit logs for a specific request."""
        return self.filter(request_id=request_id)


class AuditLog(models.Model):
    """
    Append-only audit trail entry.

    ``actor_id`` and ``actor_username`` are snapshots rather than a foreign
    key, so deleting an administrator never rewrites the history of what
    they did.
    """

    ACTION_CREATE = 'create'
    ACTION_UPDATE = 'update'
    ACTION_DELETE = 'delete'
    ACTION_CHOICES = [
        (ACTION_CREATE, 'Create'),
        (ACTION_UPDATE, 'Update'),
        (ACTION_DELETE, 'Delete'),
    ]

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier"
    )

    # Actor (null for system-originated changes)
    actor_id = models.UUIDField(
        null=True,
        blank=True,
        db_index=True,
        help_text="ID of the administrator who made the change"
    )
    actor_username = models.CharField(
        max_length=150,
        blank=True,
        db_index=True,
        help_text="Username of the actor at the time of the change"
    )

    # Change
    action = models.CharField(
        max_length=10,
        choices=ACTION_CHOICES,
        db_index=True,
        help_text="Operation kind"
    )
    table_name = models.CharField(
        max_length=100,
        db_index=True,
        help_text="Affected resource (e.g., 'admin_users', 'panchayaths')"
    )
    record_id = models.CharField(
        max_length=100,
        db_index=True,
        help_text="Identifier of the affected record"
    )
    old_values = models.JSONField(
        null=True,
        blank=True,
        help_text="State before the change (update and delete)"
    )
    new_values = models.JSONField(
        null=True,
        blank=True,
        help_text="State after the change (create and update)"
    )

    # Request Context
    ip_address = models.GenericIPAddressField(
        null=True,
        blank=True,
        help_text="IP address of the request"
    )
    user_agent = models.TextField(
        blank=True,
        help_text="User agent string"
    )
    request_id = models.CharField(
        max_length=64,
        blank=True,
        db_index=True,
        help_text="Request ID for tracing"
    )

    created_at = models.DateTimeField(
        default=timezone.now,
        db_index=True,
        editable=False,
        help_text="Timestamp when the change was recorded"
    )

    objects = AuditLogQuerySet.as_manager()

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['table_name', 'record_id'], name='audit_logs_table_record_idx'),
            models.Index(fields=['action', 'created_at'], name='audit_logs_action_created_idx'),
            models.Index(fields=['actor_id', 'created_at'], name='audit_logs_actor_created_idx'),
        ]

    def __str__(self):
        actor = self.actor_username or 'System'
        return f"{actor} - {self.action} {self.table_name}:{self.record_id}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Audit records are append-only and cannot be updated")
        super().save(*args, **kwargs)

    def delete(self, using=None, keep_parents=False):
        raise ValueError("Audit records are append-only and cannot be deleted")


class AuditedQuerySet(models.QuerySet):
    """
    QuerySet for tracked models.

    Bulk writes are routed through the recorder so a direct data-layer call
    cannot bypass the audit trail. Bulk deletes are captured by the
    delete signal receivers in ``apps.audit.signals``.
    """

    def update(self, **kwargs):
        """Update rows and write one audit record per changed row."""
        from apps.audit.services import AuditRecorder

        with transaction.atomic(using=self.db):
            before = {}
            hidden = {}
            for row in self.select_for_update():
                before[row.pk] = AuditRecorder.snapshot(row)
                hidden[row.pk] = AuditRecorder.hidden_values(row)
            updated = super().update(**kwargs)
            changed = self.model._base_manager.using(self.db).filter(pk__in=list(before))
            for row in changed:
                AuditRecorder.record_change(
                    row, before=before[row.pk], using=self.db, hidden_before=hidden[row.pk]
                )
        return updated

    def bulk_create(self, objs, *args, **kwargs):
        """Save row by row so every insert is recorded."""
        objs = list(objs)
        with transaction.atomic(using=self.db):
            for obj in objs:
                obj.save(using=self.db)
        return objs


AuditedManager = models.Manager.from_queryset(AuditedQuerySet)


class AuditedModel(BaseModel):
    """
    Abstract base for tracked resources.

    ``save()`` runs inside ``transaction.atomic()``: the previous row is
    locked and snapshotted, the row is written, and the audit record is
    inserted before the block commits. If either write fails, neither is
    visible.

    Subclasses may set:
    - ``audit_exclude``: fields never copied into snapshots (credentials)
    - ``audit_ignore``: bookkeeping fields whose changes alone are not a
      tracked mutation
    """

    audit_exclude = ()
    audit_ignore = ()

    objects = AuditedManager()

    class Meta:
        abstract = True
        ordering = ['-created_at']

    @classmethod
    def audit_table_name(cls):
        return cls._meta.db_table

    def save(self, *args, **kwargs):
        from apps.audit.services import AuditRecorder

        using = kwargs.get('using') or router.db_for_write(type(self), instance=self)
        with transaction.atomic(using=using):
            before = None
            hidden_before = None
            if not self._state.adding:
                previous = (
                    type(self)._base_manager.using(using)
                    .select_for_update()
                    .filter(pk=self.pk)
                    .first()
                )
                if previous is not None:
                    before = AuditRecorder.snapshot(previous)
                    hidden_before = AuditRecorder.hidden_values(previous)

            super().save(*args, **kwargs)

            # A partial save leaves unlisted in-memory edits unwritten
            written = self
            if kwargs.get('update_fields') is not None and before is not None:
                written = type(self)._base_manager.using(using).get(pk=self.pk)
            AuditRecorder.record_change(
                written, before=before, using=using, hidden_before=hidden_before
            )
