from flask import request


def paginate(query, default_limit=10, max_limit=100):
    """Paginate a query from the page/limit request args"""
    page = request.args.get('page', 1, type=int) or 1
    limit = request.args.get('limit', None, type=int) or request.args.get('per_page', default_limit, type=int)
    page = max(page, 1)
    limit = max(1, min(limit or default_limit, max_limit))

    pagination = query.paginate(page=page, per_page=limit, error_out=False)

    return pagination.items, {
        'current': page,
        'pages': pagination.pages,
        'total': pagination.total,
        'per_page': limit,
    }
