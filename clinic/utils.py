"""
Small helpers shared by views and services: local day boundaries, date
parsing, pagination and the success envelope.
"""
from __future__ import annotations

import math
from datetime import datetime, time, timedelta
from typing import Any, Optional

import bleach
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime
from rest_framework.response import Response

from .exceptions import BadRequest

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def local_day_bounds(day) -> tuple[datetime, datetime]:
    """Return the half-open ``[start, end)`` range of a local calendar day."""
    tz = timezone.get_current_timezone()
    start = timezone.make_aware(datetime.combine(day, time.min), tz)
    return start, start + timedelta(days=1)


def today_bounds() -> tuple[datetime, datetime]:
    return local_day_bounds(timezone.localdate())


def parse_datetime_value(value: Any, field: str = 'date') -> datetime:
    """Accept an ISO datetime or a bare ``YYYY-MM-DD`` (local midnight)."""
    if isinstance(value, datetime):
        return value if timezone.is_aware(value) else timezone.make_aware(value)
    text = str(value or '').strip()
    parsed = None
    try:
        parsed = parse_datetime(text.replace('Z', '+00:00'))
        if parsed is None:
            day = parse_date(text)
            if day is not None:
                return local_day_bounds(day)[0]
    except ValueError:
        parsed = None
    if parsed is None:
        raise BadRequest(f'Invalid {field}: {value!r}')
    return parsed if timezone.is_aware(parsed) else timezone.make_aware(parsed)


def parse_day(value: Any, field: str = 'date'):
    """Return the local calendar date named by ``value``."""
    return timezone.localtime(parse_datetime_value(value, field)).date()


def clean_text(value: Optional[str]) -> str:
    return bleach.clean((value or '').strip(), strip=True)


def page_params(request, default_limit: int = DEFAULT_PAGE_SIZE) -> tuple[int, int]:
    try:
        page = max(int(request.query_params.get('page') or 1), 1)
        limit = int(request.query_params.get('limit') or default_limit)
    except (TypeError, ValueError):
        raise BadRequest('page and limit must be integers')
    return page, min(max(limit, 1), MAX_PAGE_SIZE)


def paginate(qs, page: int, limit: int):
    """Slice ``qs`` and return ``(items, pagination)``."""
    total = qs.count()
    offset = (page - 1) * limit
    items = list(qs[offset:offset + limit])
    return items, {
        'page': page,
        'limit': limit,
        'total': total,
        'pages': math.ceil(total / limit) if limit else 0,
    }


def success(data: Any = None, message: Optional[str] = None, status: int = 200, **extra) -> Response:
    body: dict[str, Any] = {'success': True}
    if message:
        body['message'] = message
    body.update(extra)
    if data is not None:
        body['data'] = data
    return Response(body, status=status)


def client_ip(request) -> Optional[str]:
    return request.META.get('REMOTE_ADDR')


def int_param(params, name: str) -> Optional[int]:
    value = params.get(name)
    if value in (None, ''):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise BadRequest(f'{name} must be an integer')
