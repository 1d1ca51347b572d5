"""
Audit trail application.

Provides:
- AuditLog: append-only record of every tracked mutation
- AuditedModel: base for models whose writes are captured in the same transaction
- AuditRecorder: write and query surface for audit records
"""
