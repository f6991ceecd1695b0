"""QR payload encoding and QR image rendering."""
import base64
import io
import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Union

import qrcode

from qr_attendance.errors import MalformedPayload

@dataclass(frozen=True)
class QRPayload:
    """Everything a scanning client needs, embedded in the QR image."""
    
    token: str
    teacher_id: int
    branch_id: int
    subject_code: str
    semester: int
    section: str
    issued_at: datetime
    expires_at: datetime
    
    # wire name -> attribute name
    FIELDS = {
        'token': 'token',
        'teacherId': 'teacher_id',
        'branchId': 'branch_id',
        'subjectCode': 'subject_code',
        'semester': 'semester',
        'section': 'section',
        'issuedAt': 'issued_at',
        'expiresAt': 'expires_at',
    }
    
    @classmethod
    def for_session(cls, session) -> 'QRPayload':
        return cls(
            token=session.token,
            teacher_id=session.teacher_id,
            branch_id=session.branch_id,
            subject_code=session.subject_code,
            semester=session.semester,
            section=session.section,
            issued_at=session.issued_at,
            expires_at=session.expires_at,
        )
    
    def to_dict(self) -> Dict[str, Any]:
        data = {}
        for wire_name, attr in self.FIELDS.items():
            value = getattr(self, attr)
            if isinstance(value, datetime):
                value = value.isoformat()
            data[wire_name] = value
        return data
    
    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(',', ':'))
    
    @classmethod
    def parse(cls, raw: Union[str, bytes, Dict[str, Any]]) -> 'QRPayload':
        """Parse scanned QR data; unknown fields are ignored.
        
        Raises MalformedPayload when the data is not a JSON object or a
        required field is missing or of the wrong type.
        """
        if isinstance(raw, (str, bytes)):
            try:
                raw = json.loads(raw)
            except (TypeError, ValueError, RecursionError):
                raise MalformedPayload()
        
        if not isinstance(raw, dict):
            raise MalformedPayload()
        
        missing = [name for name in cls.FIELDS if raw.get(name) in (None, '')]
        if missing:
            raise MalformedPayload(f"Invalid QR code: missing {', '.join(missing)}")
        
        try:
            return cls(
                token=_as_str(raw['token']),
                teacher_id=_as_int(raw['teacherId']),
                branch_id=_as_int(raw['branchId']),
                subject_code=_as_str(raw['subjectCode']),
                semester=_as_int(raw['semester']),
                section=_as_str(raw['section']),
                issued_at=_as_datetime(raw['issuedAt']),
                expires_at=_as_datetime(raw['expiresAt']),
            )
        except (TypeError, ValueError):
            raise MalformedPayload()

def _as_str(value) -> str:
    if not isinstance(value, str):
        raise TypeError('expected a string')
    return value

def _as_int(value) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError('expected an integer')
    return value

def _as_datetime(value) -> datetime:
    """ISO 8601 timestamp; aware values are normalised to naive UTC."""
    parsed = datetime.fromisoformat(_as_str(value).replace('Z', '+00:00'))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed

class QRService:
    """Service for QR code operations."""
    
    @staticmethod
    def render_image(data: str, box_size: int = 10, border: int = 2) -> str:
        """Render ``data`` as a PNG QR code and return it as a data URL."""
        qr = qrcode.QRCode(
            version=None,  # Auto-determine size
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=box_size,
            border=border,
        )
        qr.add_data(data)
        qr.make(fit=True)
        
        img = qr.make_image(fill_color="black", back_color="white")
        
        buffered = io.BytesIO()
        img.save(buffered, format="PNG")
        img_str = base64.b64encode(buffered.getvalue()).decode()
        
        return f"data:image/png;base64,{img_str}"
