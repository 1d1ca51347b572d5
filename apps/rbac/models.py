"""
RBAC models for the administrative back-office.

Implements:
- AdminUser: administrator identity with a role (AUTH_USER_MODEL)
- AdminPermission: (module, action) capability catalog
- AdminUserPermission: capability granted to an administrator
"""
import logging
from django.db import models
from django.contrib.auth.hashers import make_password, check_password
from django.utils import timezone
from apps.core.models import BaseModel
from apps.audit.models import AuditedManager, AuditedModel

logger = logging.getLogger(__name__)


class AdminUserManager(AuditedManager):
    """
    Manager for AdminUser queries.

    Compatible with Django's authentication system and admin interface.
    """

    def active(self):
        """Return only active administrators."""
        return self.filter(is_active=True)

    def by_username(self, username):
        """Find administrator by handle."""
        return self.filter(username=username).first()

    def create_user(self, username, password=None, **extra_fields):
        """
        Create a new administrator with hashed password.

        This method is compatible with Django's authentication system.
        """
        if not username:
            raise ValueError('Username is required')

        extra_fields.setdefault('is_active', True)
        extra_fields.setdefault('role', AdminUser.ROLE_ADMIN)
        if extra_fields.get('email') == '':
            extra_fields['email'] = None

        user = self.model(username=username, **extra_fields)
        if password:
            user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, username, password=None, **extra_fields):
        """
        Create a super_admin.

        This method is required for Django's createsuperuser command.
        """
        extra_fields.setdefault('role', AdminUser.ROLE_SUPER_ADMIN)
        extra_fields.setdefault('is_active', True)

        if extra_fields.get('role') != AdminUser.ROLE_SUPER_ADMIN:
            raise ValueError('Superuser must have role=super_admin')

        return self.create_user(username, password, **extra_fields)

    def get_by_natural_key(self, username):
        """
        Get administrator by natural key (username).

        This method is required for Django's authentication system.
        """
        return self.get(**{self.model.USERNAME_FIELD: username})


class AdminUser(AuditedModel):
    """
    Administrator identity.

    This is the AUTH_USER_MODEL for the entire application, including Django admin.
    Every create, update and delete is captured in the audit trail; the
    password hash never appears in audit snapshots.
    """

    ROLE_SUPER_ADMIN = 'super_admin'
    ROLE_ADMIN = 'admin'
    ROLE_LOCAL_ADMIN = 'local_admin'
    ROLE_CHOICES = [
        (ROLE_SUPER_ADMIN, 'Super Admin'),
        (ROLE_ADMIN, 'Admin'),
        (ROLE_LOCAL_ADMIN, 'Local Admin'),
    ]
    ROLES = {ROLE_SUPER_ADMIN, ROLE_ADMIN, ROLE_LOCAL_ADMIN}

    username = models.CharField(
        max_length=150,
        unique=True,
        help_text="Login handle (unique globally)"
    )
    email = models.EmailField(
        unique=True,
        null=True,
        blank=True,
        help_text="Optional email address"
    )
    password_hash = models.CharField(
        max_length=255,
        help_text="Hashed password",
        db_column='password_hash'
    )
    role = models.CharField(
        max_length=20,
        choices=ROLE_CHOICES,
        default=ROLE_ADMIN,
        db_index=True,
        help_text="Administrative role"
    )

    # Status
    is_active = models.BooleanField(
        default=True,
        db_index=True,
        help_text="Whether the account can be used"
    )

    # Activity Tracking
    last_login_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Last successful authentication"
    )

    # Django admin compatibility
    USERNAME_FIELD = 'username'
    EMAIL_FIELD = 'email'
    REQUIRED_FIELDS = []

    audit_exclude = ('password_hash',)
    audit_ignore = ('last_login_at',)

    objects = AdminUserManager()

    class Meta:
        db_table = 'admin_users'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['role', 'is_active'], name='admin_users_role_active_idx'),
        ]

    def __str__(self):
        return self.username

    @property
    def password(self):
        """
        Alias for password_hash to maintain Django admin compatibility.
        """
        return self.password_hash

    @password.setter
    def password(self, value):
        self.password_hash = value

    def check_password(self, raw_password):
        """Check if provided password matches stored hash."""
        return check_password(raw_password, self.password_hash)

    def set_password(self, raw_password):
        """Set password (hashes automatically)."""
        self.password_hash = make_password(raw_password)

    def get_username(self):
        return self.username

    def update_last_login(self):
        """Update last_login_at to current time."""
        self.last_login_at = timezone.now()
        self.save(update_fields=['last_login_at', 'updated_at'])

    @property
    def is_super_admin(self):
        return self.role == self.ROLE_SUPER_ADMIN

    @property
    def is_authenticated(self):
        """
        Always return True for AdminUser instances.
        This is required for Django authentication compatibility.
        """
        return True

    @property
    def is_anonymous(self):
        return False

    @property
    def is_staff(self):
        """
        Django admin access is limited to super_admins.
        """
        return self.is_super_admin

    @property
    def is_superuser(self):
        return self.is_super_admin

    def has_perm(self, perm, obj=None):
        return self.is_active and self.is_super_admin

    def has_perms(self, perm_list, obj=None):
        return self.is_active and self.is_super_admin

    def has_module_perms(self, app_label):
        return self.is_active and self.is_super_admin

    def get_user_permissions(self, obj=None):
        """
        Return empty set - capabilities are handled by the permission registry.
        """
        return set()

    def get_group_permissions(self, obj=None):
        return set()

    def get_all_permissions(self, obj=None):
        return set()

    def natural_key(self):
        return (self.username,)


class AdminPermissionManager(models.Manager):
    """Manager for AdminPermission queries."""

    def by_module(self, module):
        return self.filter(module=module)

    def by_code(self, code):
        """Find a capability by its ``module:action`` code."""
        module, _, action = code.partition(':')
        return self.filter(module=module, action=action).first()


class AdminPermission(BaseModel):
    """
    A (module, action) capability, e.g. ``("users", "create")``.

    The catalog is append-mostly: grants reference capabilities, so they are
    rarely deleted.
    """

    module = models.CharField(
        max_length=50,
        db_index=True,
        help_text="Module name (e.g., 'users', 'panchayaths')"
    )
    action = models.CharField(
        max_length=50,
        help_text="Action name (e.g., 'create', 'read')"
    )
    description = models.TextField(
        blank=True,
        help_text="Human-readable description"
    )

    objects = AdminPermissionManager()

    class Meta:
        db_table = 'admin_permissions'
        ordering = ['module', 'action']
        unique_together = [('module', 'action')]

    def __str__(self):
        return self.code

    @property
    def code(self):
        return f"{self.module}:{self.action}"


class AdminUserPermission(BaseModel):
    """
    Capability granted to an administrator.

    Removed together with either side. Grants are not a tracked resource:
    the registry records grant changes explicitly on
    ``admin_user_permissions``.
    """

    user = models.ForeignKey(
        AdminUser,
        on_delete=models.CASCADE,
        related_name='capability_grants',
        help_text="Administrator holding the capability"
    )
    permission = models.ForeignKey(
        AdminPermission,
        on_delete=models.CASCADE,
        related_name='grants',
        help_text="Granted capability"
    )
    granted_by = models.ForeignKey(
        AdminUser,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='grants_given',
        help_text="Administrator who made the grant"
    )

    class Meta:
        db_table = 'admin_user_permissions'
        ordering = ['-created_at']
        unique_together = [('user', 'permission')]

    def __str__(self):
        return f"{self.user} - {self.permission}"
