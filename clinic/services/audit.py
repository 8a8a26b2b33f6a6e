from typing import Any, Dict, Optional

from ..models import AuditEvent, User


def log_action(*, user: Optional[User], action: str, object_type: Optional[str] = None,
               object_id: Optional[int] = None, detail: Optional[Dict[str, Any]] = None) -> AuditEvent:
    return AuditEvent.objects.create(
        user=user if getattr(user, 'pk', None) else None,
        action=action,
        object_type=object_type, object_id=object_id,
        detail=detail or {},
    )


def recent_events(limit: int = 20):
    return AuditEvent.objects.select_related('user').order_by('-created_at', '-id')[:limit]
