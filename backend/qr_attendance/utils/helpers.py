"""Helper functions for the application."""
from flask import jsonify
from typing import Any, Dict, Optional

def handle_error(error, status_code: int):
    """Handle HTTP errors with the common error envelope."""
    description = getattr(error, 'description', None) or str(error)
    return error_response(description, status_code, code=f'http_{status_code}')

def success_response(data: Any = None, message: str = "Success",
                     status_code: int = 200, pagination: Optional[Dict] = None):
    """Return consistent success response."""
    response = {
        'success': True,
        'message': message
    }
    
    if data is not None:
        response['data'] = data
    if pagination is not None:
        response['pagination'] = pagination
    
    return jsonify(response), status_code

def error_response(message: str, status_code: int = 400,
                   code: Optional[str] = None, data: Any = None):
    """Return consistent error response."""
    response = {
        'success': False,
        'error': {
            'code': code or 'error',
            'message': message
        }
    }
    
    if data is not None:
        response['data'] = data
    
    return jsonify(response), status_code

def pagination_meta(pagination) -> Dict[str, int]:
    """Describe a Flask-SQLAlchemy pagination object."""
    return {
        'page': pagination.page,
        'per_page': pagination.per_page,
        'total': pagination.total,
        'pages': pagination.pages
    }
