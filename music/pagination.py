import math

MAX_LIMIT = 100


def _positive_int(value, default):
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def page_params(request, default_limit=20):
    """Read page/limit from the query string. page < 1 is page 1, limit is kept in 1..100."""
    page = max(1, _positive_int(request.query_params.get("page"), 1))
    limit = _positive_int(request.query_params.get("limit"), default_limit)
    limit = min(max(1, limit), MAX_LIMIT)
    return page, limit


def paginate(queryset, request, default_limit=20):
    """
    Slice *queryset* for the requested page.

    Returns (items, meta) where meta is
    {"page", "limit", "total", "total_pages"} and
    total_pages = max(1, ceil(total / limit)).
    """
    page, limit = page_params(request, default_limit)
    total = queryset.count()
    offset = (page - 1) * limit
    items = list(queryset[offset:offset + limit])
    meta = {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": max(1, math.ceil(total / limit)),
    }
    return items, meta
