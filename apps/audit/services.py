"""
Audit recorder service.

Writes and queries the append-only audit trail.
"""
import json
import logging
from contextlib import contextmanager
from datetime import date, datetime

from django.core.exceptions import ValidationError
from django.core.serializers.json import DjangoJSONEncoder
from django.core.validators import validate_ipv46_address
from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from apps.audit.context import audit_context, current_context
from apps.audit.models import AuditLog
from apps.core.exceptions import DuplicateKey, InvalidInput, TransactionFailure

logger = logging.getLogger(__name__)

_FROM_CONTEXT = object()

# Bookkeeping columns that never count as a change on their own
ALWAYS_IGNORED = ('updated_at',)


class AuditRecorder:
    """
    Capture every tracked mutation as an immutable record.

    ``record`` must run inside the transaction of the mutation it describes;
    it refuses to write otherwise.
    """

    @staticmethod
    def snapshot(instance):
        """Return a JSON-safe dict of the instance's concrete fields."""
        exclude = set(getattr(instance, 'audit_exclude', ()))
        data = {
            field.attname: field.value_from_object(instance)
            for field in instance._meta.concrete_fields
            if field.name not in exclude and field.attname not in exclude
        }
        return json.loads(json.dumps(data, cls=DjangoJSONEncoder))

    @staticmethod
    def hidden_values(instance):
        """Raw values of the ``audit_exclude`` fields, for change detection only."""
        return {
            name: getattr(instance, name, None)
            for name in getattr(instance, 'audit_exclude', ())
        }

    @classmethod
    def record_change(cls, instance, before=None, using=None, hidden_before=None):
        """
        Record a create (``before`` is None) or an update of ``instance``.

        Excluded fields never reach the snapshots. When ``hidden_before`` is
        given and one of them changed, ``new_values`` carries a
        ``<field>_changed`` marker instead of the value.

        Updates that only touch ignored bookkeeping fields are skipped and
        return None.
        """
        after = cls.snapshot(instance)

        if before is None:
            action = AuditLog.ACTION_CREATE
        else:
            hidden_after = cls.hidden_values(instance)
            for name, value in (hidden_before or {}).items():
                if hidden_after.get(name) != value:
                    after[f'{name}_changed'] = True

            ignored = set(getattr(instance, 'audit_ignore', ())) | set(ALWAYS_IGNORED)
            changed = {
                key for key in set(before) | set(after)
                if key not in ignored and before.get(key) != after.get(key)
            }
            if not changed:
                return None
            action = AuditLog.ACTION_UPDATE

        return cls.record(
            action=action,
            table_name=instance.audit_table_name(),
            record_id=instance.pk,
            old_values=before,
            new_values=after,
            using=using,
        )

    @classmethod
    def record(cls, action, table_name, record_id, old_values=None, new_values=None,
               actor=_FROM_CONTEXT, using=None):
        """
        Write one audit record.

        Args:
            action: 'create', 'update' or 'delete'
            table_name: Affected resource
            record_id: Identifier of the affected row
            old_values: Prior state (update, delete)
            new_values: New state (create, update)
            actor: Acting administrator; defaults to the bound audit context.
                Pass None for a system-originated change.
            using: Database alias

        Raises:
            TransactionFailure: If called outside an atomic block
            InvalidInput: If the action is not create, update or delete
        """
        if not transaction.get_connection(using).in_atomic_block:
            logger.error(
                "Audit record attempted outside a transaction",
                extra={'table_name': table_name, 'record_id': str(record_id), 'action': action}
            )
            raise TransactionFailure(
                "Audit records must be written in the transaction of their mutation"
            )

        if action not in dict(AuditLog.ACTION_CHOICES):
            raise InvalidInput(f"Unknown audit action: {action}")

        context = current_context()
        if actor is _FROM_CONTEXT:
            actor = context.get('actor')

        actor_id = None
        actor_username = ''
        if actor is not None and getattr(actor, 'is_authenticated', False):
            actor_id = actor.pk
            actor_username = actor.get_username()

        ip_address = context.get('ip_address')
        if ip_address:
            try:
                validate_ipv46_address(ip_address)
            except ValidationError:
                ip_address = None

        entry = AuditLog(
            actor_id=actor_id,
            actor_username=actor_username,
            action=action,
            table_name=table_name,
            record_id=str(record_id),
            old_values=old_values,
            new_values=new_values,
            ip_address=ip_address or None,
            user_agent=context.get('user_agent') or '',
            request_id=context.get('request_id') or '',
        )
        entry.save(using=using)

        logger.info(
            f"Audit: {action} {table_name}:{record_id}",
            extra={
                'audit_id': str(entry.id),
                'actor': actor_username or None,
                'table_name': table_name,
                'record_id': str(record_id),
                'action': action,
            }
        )
        return entry

    @staticmethod
    def _parse_bound(value):
        """
        Parse a date filter bound.

        Returns ``(bound, is_day)``: a plain date compares against the day of
        ``created_at``, a datetime against the instant itself.
        """
        if value in (None, ''):
            return None, False
        if isinstance(value, datetime):
            parsed = value
        elif isinstance(value, date):
            return value, True
        else:
            try:
                parsed = parse_datetime(value)
                day = None if parsed else parse_date(value)
            except ValueError:
                parsed = day = None
            if parsed is None and day is None:
                raise InvalidInput(
                    f"Invalid date: {value}",
                    details={'value': value, 'expected': 'YYYY-MM-DD or ISO 8601 datetime'}
                )
            if day is not None:
                return day, True
        if timezone.is_naive(parsed):
            parsed = timezone.make_aware(parsed)
        return parsed, False

    @classmethod
    def list(cls, action=None, table_name=None, actor_username=None,
             date_from=None, date_to=None, search=None):
        """
        Query audit records, newest first.

        ``date_from``/``date_to`` are inclusive. A plain date covers the whole
        day in the current time zone. ``actor_username`` and ``search`` are
        case-insensitive substring matches.
        """
        qs = AuditLog.objects.all()

        if action:
            qs = qs.filter(action=action)
        if table_name:
            qs = qs.filter(table_name=table_name)
        if actor_username:
            qs = qs.filter(actor_username__icontains=actor_username)

        start, start_is_day = cls._parse_bound(date_from)
        if start is not None:
            qs = qs.filter(created_at__date__gte=start) if start_is_day else qs.filter(created_at__gte=start)

        end, end_is_day = cls._parse_bound(date_to)
        if end is not None:
            qs = qs.filter(created_at__date__lte=end) if end_is_day else qs.filter(created_at__lte=end)

        if search:
            qs = qs.filter(
                Q(action__icontains=search) |
                Q(table_name__icontains=search) |
                Q(record_id__icontains=search) |
                Q(actor_username__icontains=search)
            )

        return qs.order_by('-created_at')

    @staticmethod
    def recent(limit=10):
        """Return the ``limit`` most recent audit records."""
        return AuditLog.objects.order_by('-created_at')[:limit]


@contextmanager
def audited_transaction(actor=None, using=None):
    """
    Run a unit of mutations and their audit records in one transaction.

    Binds ``actor`` to the audit context and translates store failures into
    the error taxonomy after the transaction has rolled back.
    """
    try:
        with transaction.atomic(using=using), audit_context(actor=actor):
            yield
    except IntegrityError as exc:
        logger.warning(f"Integrity error: {exc}")
        raise DuplicateKey() from exc
    except DatabaseError as exc:
        logger.error("Transaction failed and was rolled back", exc_info=True)
        raise TransactionFailure() from exc
