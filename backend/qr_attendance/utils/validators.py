"""Validation utilities for the application."""
import re
from datetime import date, datetime
from typing import Any, Dict, List, Optional

TIME_OF_DAY_PATTERN = re.compile(r'^([01]?\d|2[0-3]):([0-5]\d)$')

class Validator:
    """Validation helper class."""
    
    @staticmethod
    def validate_email(email: str) -> bool:
        """Validate email format."""
        if not email:
            return False
        pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
        return bool(re.match(pattern, email))
    
    @staticmethod
    def validate_password(password: str) -> Dict[str, Any]:
        """Validate password strength."""
        errors = []
        
        if not password:
            errors.append("Password is required")
        elif len(password) < 6:
            errors.append("Password must be at least 6 characters long")
        elif len(password) > 128:
            errors.append("Password is too long")
        
        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }
    
    @staticmethod
    def validate_name(name: str) -> Dict[str, Any]:
        """Validate user name."""
        errors = []
        
        if not name or not name.strip():
            errors.append("Name is required")
        elif len(name.strip()) < 2:
            errors.append("Name must be at least 2 characters long")
        elif len(name.strip()) > 100:
            errors.append("Name is too long")
        
        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }
    
    @staticmethod
    def validate_required_fields(data: Dict, required_fields: List[str]) -> Dict[str, Any]:
        """Validate required fields in data."""
        errors = []
        
        for field in required_fields:
            value = data.get(field)
            if value is None or (isinstance(value, str) and not value.strip()):
                errors.append(f"{field} is required")
        
        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }
    
    @staticmethod
    def is_positive_int(value: Any) -> bool:
        """True for real integers above zero (booleans excluded)."""
        return isinstance(value, int) and not isinstance(value, bool) and value > 0
    
    @staticmethod
    def validate_time_of_day(value: Any) -> bool:
        """Validate a 24h ``HH:MM`` string."""
        return isinstance(value, str) and bool(TIME_OF_DAY_PATTERN.match(value.strip()))
    
    @staticmethod
    def parse_date(value: Optional[str]) -> Optional[date]:
        """Parse ``YYYY-MM-DD`` (or a full ISO timestamp); None when absent."""
        if not value:
            return None
        try:
            return datetime.fromisoformat(value.replace('Z', '+00:00')).date()
        except ValueError:
            return None
