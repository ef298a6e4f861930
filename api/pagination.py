from flask import current_app, request

from core.errors import ValidationError


def _positive_int(name, default):
    try:
        value = int(request.args.get(name, default))
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


def pagination_args(statuses):
    """Read page, limit and status filter from the query string"""
    page = _positive_int('page', 1)
    limit = min(
        _positive_int('limit', current_app.config.get('DEFAULT_PAGE_SIZE', 10)),
        current_app.config.get('MAX_PAGE_SIZE', 100)
    )

    status = request.args.get('status', 'all').strip().lower()
    if status == 'all':
        return page, limit, None
    if status not in statuses:
        raise ValidationError([{
            'field': 'status',
            'message': f"Must be one of: all, {', '.join(statuses)}"
        }])
    return page, limit, status
