"""HTTP blueprints."""
from flask import current_app, request

def pagination_args(default_per_page: int = None):
    """``page`` and ``per_page`` query arguments, clamped to the configured maximum."""
    page = max(request.args.get('page', 1, type=int) or 1, 1)
    per_page = request.args.get('per_page', type=int) \
        or request.args.get('limit', type=int) \
        or default_per_page \
        or current_app.config.get('DEFAULT_PAGE_SIZE', 10)
    per_page = min(max(per_page, 1), current_app.config.get('MAX_PAGE_SIZE', 100))
    return page, per_page
