from .errors import ValidationError

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10


def _positive_int(value, name, default):
    if value in (None, ''):
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a positive integer")
    if number < 1:
        raise ValidationError(f"{name} must be a positive integer")
    return number


def parse_page_params(query_params):
    """Read 1-indexed `page` and `limit` query parameters"""
    page = _positive_int(query_params.get('page'), 'page', DEFAULT_PAGE)
    limit = _positive_int(query_params.get('limit'), 'limit', DEFAULT_LIMIT)
    return page, limit


def paginate(queryset, page, limit):
    """Slice a queryset or list and return (items, total)"""
    offset = (page - 1) * limit
    if isinstance(queryset, list):
        return queryset[offset:offset + limit], len(queryset)
    return list(queryset[offset:offset + limit]), queryset.count()


def envelope(items, total, page, limit):
    return {
        'items': items,
        'total': total,
        'page': page,
        'limit': limit,
    }
