"""Fire-and-forget audit trail for economic and moderation actions."""

from typing import Any

from loguru import logger

from fliplive.schemas import AuditLog
from fliplive.shared.utils import utc_now


class AuditLogger:
    async def log_action(
        self,
        user_id: str | None,
        action: str,
        *,
        success: bool = True,
        details: dict[str, Any] | None = None,
        error: str | None = None,
    ) -> None:
        """Persist one audit record. Never raises."""
        try:
            await AuditLog(
                user_id=user_id,
                action=action,
                success=success,
                details=details or {},
                error=error,
                created_at=utc_now(),
            ).insert()
        except Exception as e:
            logger.warning(f"Failed to write audit log action={action} user={user_id}: {e}")


_audit_logger: AuditLogger | None = None


def get_audit_logger() -> AuditLogger:
    global _audit_logger
    if _audit_logger is None:
        _audit_logger = AuditLogger()
    return _audit_logger
