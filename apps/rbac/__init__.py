"""
RBAC (Role-Based Access Control) application.

Provides:
- Administrator identities with roles (super_admin, admin, local_admin)
- Capability catalog and per-administrator grants
- Policy evaluator consulted before every mutation
- JWT login with lockout
"""
