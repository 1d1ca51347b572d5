"""
Panchayath domain models.

All three are tracked resources: creates, updates and deletes (including
cascades from a deleted panchayath) are written to the audit trail.
"""
from django.db import models
from apps.audit.models import AuditedModel


class Panchayath(AuditedModel):
    """Local self-government unit."""

    name = models.CharField(max_length=200, help_text="Panchayath name")
    district = models.CharField(max_length=100, db_index=True)
    state = models.CharField(max_length=100, db_index=True)

    class Meta:
        db_table = 'panchayaths'
        ordering = ['name']
        unique_together = [('name', 'district', 'state')]

    def __str__(self):
        return f"{self.name} ({self.district})"


class Agent(AuditedModel):
    """
    Field agent working in one panchayath.

    Agents form a hierarchy through ``superior``; deleting a superior
    detaches their subordinates instead of deleting them.
    """

    ROLE_COORDINATOR = 'coordinator'
    ROLE_SUPERVISOR = 'supervisor'
    ROLE_GROUP_LEADER = 'group-leader'
    ROLE_PRO = 'pro'
    ROLE_CHOICES = [
        (ROLE_COORDINATOR, 'Coordinator'),
        (ROLE_SUPERVISOR, 'Supervisor'),
        (ROLE_GROUP_LEADER, 'Group Leader'),
        (ROLE_PRO, 'PRO'),
    ]

    name = models.CharField(max_length=200)
    panchayath = models.ForeignKey(
        Panchayath,
        on_delete=models.CASCADE,
        related_name='agents'
    )
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, db_index=True)
    phone = models.CharField(max_length=20, blank=True, null=True)
    email = models.EmailField(blank=True, null=True)
    ward = models.CharField(max_length=50, blank=True, null=True)
    superior = models.ForeignKey(
        'self',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='subordinates'
    )

    class Meta:
        db_table = 'agents'
        ordering = ['name']
        indexes = [
            models.Index(fields=['panchayath', 'role'], name='agents_panchayath_role_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.get_role_display()})"


class ManagementTeam(AuditedModel):
    """Team overseeing one or more panchayaths."""

    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    panchayath = models.ForeignKey(
        Panchayath,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='management_teams'
    )
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        db_table = 'management_teams'
        ordering = ['name']

    def __str__(self):
        return self.name
