from django.apps import AppConfig
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
import logging

logger = logging.getLogger(__name__)

WEAK_SECRET_PATTERNS = ('your-secret-key', 'change-me', 'insecure', '12345', 'password')


class CoreConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.core'
    verbose_name = 'Core'

    def ready(self):
        """
        Refuse to serve requests with unsafe configuration.

        Only runs for processes that serve requests so migrations, shell
        and the test runner work with development defaults.
        """
        import sys
        serving = 'runserver' in sys.argv or (sys.argv and 'gunicorn' in sys.argv[0])
        if not serving:
            return

        problems = (
            self.jwt_problems()
            + self.secret_key_problems()
            + self.policy_problems()
        )
        if problems:
            raise ImproperlyConfigured(
                "Startup configuration rejected:\n- " + "\n- ".join(problems)
            )

        if not settings.DEBUG and not getattr(settings, 'SECURE_SSL_REDIRECT', False):
            logger.warning("SECURE_SSL_REDIRECT is disabled; HTTPS should be enforced in production")

        logger.info("Startup configuration validated")

    @staticmethod
    def jwt_problems():
        jwt_secret = getattr(settings, 'JWT_SECRET_KEY', None)
        if not jwt_secret:
            return ["JWT_SECRET_KEY is not set"]

        problems = []
        if len(jwt_secret) < 32:
            problems.append(f"JWT_SECRET_KEY must be at least 32 characters (got {len(jwt_secret)})")
        if jwt_secret == settings.SECRET_KEY:
            problems.append("JWT_SECRET_KEY must differ from SECRET_KEY")
        if len(set(jwt_secret)) < 16:
            problems.append("JWT_SECRET_KEY needs at least 16 distinct characters")
        if not settings.DEBUG and jwt_secret == settings.DEFAULT_JWT_SECRET_KEY:
            problems.append("JWT_SECRET_KEY is still the development default")
        return problems

    @staticmethod
    def secret_key_problems():
        secret_key = getattr(settings, 'SECRET_KEY', None)
        if not secret_key:
            return ["SECRET_KEY is not set"]

        if len(secret_key) < 50:
            logger.warning(f"SECRET_KEY is shorter than recommended ({len(secret_key)} < 50)")

        if settings.DEBUG:
            return []
        lowered = secret_key.lower()
        return [
            f"SECRET_KEY looks like a default value (contains '{pattern}')"
            for pattern in WEAK_SECRET_PATTERNS
            if pattern in lowered
        ]

    @staticmethod
    def policy_problems():
        """Overrides in ADMIN_RESOURCE_POLICIES must name known requirements."""
        from apps.rbac.policy import ACTIVE_ONLY, SUPER_ADMIN_ONLY

        overrides = getattr(settings, 'ADMIN_RESOURCE_POLICIES', None) or {}
        return [
            f"ADMIN_RESOURCE_POLICIES[{resource!r}][{operation!r}] = {requirement!r} "
            f"is not one of {ACTIVE_ONLY!r}, {SUPER_ADMIN_ONLY!r}"
            for resource, operations in overrides.items()
            for operation, requirement in operations.items()
            if requirement not in (ACTIVE_ONLY, SUPER_ADMIN_ONLY)
        ]
