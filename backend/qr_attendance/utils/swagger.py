"""Swagger/OpenAPI configuration for the application."""
from flask_swagger_ui import get_swaggerui_blueprint

# Swagger UI configuration
SWAGGER_URL = '/api/docs'
API_URL = '/api/swagger.json'

def get_swagger_blueprint():
    """Create and return swagger UI blueprint."""
    return get_swaggerui_blueprint(
        SWAGGER_URL,
        API_URL,
        config={
            'app_name': "QR Attendance Service API",
            'docExpansion': 'list',
            'validatorUrl': None,
        }
    )

def _envelope(data_ref=None):
    data = {'$ref': data_ref} if data_ref else {'type': 'object'}
    return {
        'type': 'object',
        'properties': {
            'success': {'type': 'boolean'},
            'message': {'type': 'string'},
            'data': data
        }
    }

def _json_body(schema_ref):
    return {
        'required': True,
        'content': {'application/json': {'schema': {'$ref': schema_ref}}}
    }

def _ok(description, data_ref=None, status='200'):
    return {
        status: {
            'description': description,
            'content': {'application/json': {'schema': _envelope(data_ref)}}
        }
    }

def _errors(*codes):
    return {str(code): {'$ref': '#/components/responses/Error'} for code in codes}

SECURED = [{'bearerAuth': []}]

def generate_swagger_spec():
    """Generate OpenAPI/Swagger specification."""
    return {
        "openapi": "3.0.0",
        "info": {
            "title": "QR Attendance Service API",
            "description": "Lecture sessions with time-limited QR codes and student self check-in",
            "version": "1.0.0"
        },
        "servers": [
            {"url": "http://127.0.0.1:5000", "description": "Development server"}
        ],
        "components": {
            "securitySchemes": {
                "bearerAuth": {
                    "type": "http",
                    "scheme": "bearer",
                    "bearerFormat": "JWT"
                }
            },
            "responses": {
                "Error": {
                    "description": "Error envelope",
                    "content": {"application/json": {"schema": {"$ref": "#/components/schemas/Error"}}}
                }
            },
            "schemas": {
                "Error": {
                    "type": "object",
                    "properties": {
                        "success": {"type": "boolean", "example": False},
                        "error": {
                            "type": "object",
                            "properties": {
                                "code": {"type": "string", "example": "section_mismatch"},
                                "message": {"type": "string"}
                            }
                        },
                        "data": {"type": "object", "nullable": True}
                    }
                },
                "LoginRequest": {
                    "type": "object",
                    "required": ["email", "password"],
                    "properties": {
                        "email": {"type": "string", "format": "email"},
                        "password": {"type": "string"}
                    }
                },
                "RegisterRequest": {
                    "type": "object",
                    "required": ["email", "password", "name"],
                    "properties": {
                        "email": {"type": "string", "format": "email"},
                        "password": {"type": "string", "minLength": 6},
                        "name": {"type": "string"},
                        "role": {"type": "string", "enum": ["student", "teacher"]},
                        "roll_number": {"type": "string"},
                        "branch_id": {"type": "integer"},
                        "semester": {"type": "integer"},
                        "section": {"type": "string", "default": "A"},
                        "employee_id": {"type": "string"},
                        "department": {"type": "string"}
                    }
                },
                "CreateSessionRequest": {
                    "type": "object",
                    "required": ["branch_id", "subject_code", "subject_name", "semester",
                                 "start_time", "end_time"],
                    "properties": {
                        "branch_id": {"type": "integer"},
                        "subject_code": {"type": "string"},
                        "subject_name": {"type": "string"},
                        "semester": {"type": "integer", "minimum": 1},
                        "section": {"type": "string", "default": "A"},
                        "start_time": {"type": "string", "example": "09:00"},
                        "end_time": {"type": "string", "example": "10:00"},
                        "valid_minutes": {"type": "integer", "minimum": 1, "default": 60}
                    }
                },
                "QRPayload": {
                    "type": "object",
                    "properties": {
                        "token": {"type": "string"},
                        "teacherId": {"type": "integer"},
                        "branchId": {"type": "integer"},
                        "subjectCode": {"type": "string"},
                        "semester": {"type": "integer"},
                        "section": {"type": "string"},
                        "issuedAt": {"type": "string", "format": "date-time"},
                        "expiresAt": {"type": "string", "format": "date-time"}
                    }
                },
                "LectureSession": {
                    "type": "object",
                    "properties": {
                        "id": {"type": "integer"},
                        "subject": {
                            "type": "object",
                            "properties": {"code": {"type": "string"}, "name": {"type": "string"}}
                        },
                        "branch_id": {"type": "integer"},
                        "semester": {"type": "integer"},
                        "section": {"type": "string"},
                        "date": {"type": "string", "format": "date"},
                        "start_time": {"type": "string"},
                        "end_time": {"type": "string"},
                        "expires_at": {"type": "string", "format": "date-time"},
                        "is_active": {"type": "boolean"},
                        "state": {"type": "string", "enum": ["active", "expired", "closed"]}
                    }
                },
                "AttendanceRecord": {
                    "type": "object",
                    "properties": {
                        "id": {"type": "integer"},
                        "session_id": {"type": "integer"},
                        "student_id": {"type": "integer"},
                        "status": {"type": "string", "enum": ["present", "late", "absent"]},
                        "marked_at": {"type": "string", "format": "date-time"},
                        "location": {"type": "object", "nullable": True},
                        "device_info": {"type": "string", "nullable": True}
                    }
                },
                "ScanRequest": {
                    "type": "object",
                    "required": ["qr_data"],
                    "properties": {
                        "qr_data": {"type": "string", "description": "Raw QR payload JSON"},
                        "location": {
                            "type": "object",
                            "properties": {"latitude": {"type": "number"}, "longitude": {"type": "number"}}
                        },
                        "device_info": {"type": "string"}
                    }
                },
                "StatusRequest": {
                    "type": "object",
                    "required": ["status"],
                    "properties": {
                        "student_id": {"type": "integer"},
                        "status": {"type": "string", "enum": ["present", "late", "absent"]}
                    }
                }
            }
        },
        "paths": {
            "/api/auth/register": {
                "post": {
                    "tags": ["Authentication"], "summary": "Register a student or teacher",
                    "requestBody": _json_body("#/components/schemas/RegisterRequest"),
                    "responses": {**_ok("Registered", status='201'), **_errors(400)}
                }
            },
            "/api/auth/login": {
                "post": {
                    "tags": ["Authentication"], "summary": "Login",
                    "requestBody": _json_body("#/components/schemas/LoginRequest"),
                    "responses": {**_ok("Tokens and user"), **_errors(400, 401)}
                }
            },
            "/api/auth/me": {
                "get": {
                    "tags": ["Authentication"], "summary": "Current user", "security": SECURED,
                    "responses": {**_ok("User with role profile"), **_errors(401)}
                }
            },
            "/api/teacher/sessions": {
                "post": {
                    "tags": ["Teacher"], "summary": "Issue a lecture session and its QR code",
                    "security": SECURED,
                    "requestBody": _json_body("#/components/schemas/CreateSessionRequest"),
                    "responses": {**_ok("Session, QR image and payload", status='201'),
                                  **_errors(400, 401, 403, 404)}
                },
                "get": {
                    "tags": ["Teacher"], "summary": "List own sessions", "security": SECURED,
                    "parameters": [
                        {"name": "date", "in": "query", "schema": {"type": "string", "format": "date"}},
                        {"name": "branch", "in": "query", "schema": {"type": "integer"}},
                        {"name": "subject", "in": "query", "schema": {"type": "string"}},
                        {"name": "page", "in": "query", "schema": {"type": "integer"}},
                        {"name": "per_page", "in": "query", "schema": {"type": "integer"}}
                    ],
                    "responses": {**_ok("Paginated sessions"), **_errors(401, 403)}
                }
            },
            "/api/teacher/sessions/{session_id}/close": {
                "post": {
                    "tags": ["Teacher"], "summary": "Close a session early", "security": SECURED,
                    "parameters": [{"name": "session_id", "in": "path", "required": True,
                                    "schema": {"type": "integer"}}],
                    "responses": {**_ok("Closed session", "#/components/schemas/LectureSession"),
                                  **_errors(403, 404)}
                }
            },
            "/api/teacher/sessions/{session_id}/attendance": {
                "get": {
                    "tags": ["Teacher"], "summary": "Cohort roster for a session", "security": SECURED,
                    "parameters": [{"name": "session_id", "in": "path", "required": True,
                                    "schema": {"type": "integer"}}],
                    "responses": {**_ok("Roster and summary"), **_errors(403, 404)}
                },
                "post": {
                    "tags": ["Teacher"], "summary": "Mark a student manually (create or update)",
                    "security": SECURED,
                    "parameters": [{"name": "session_id", "in": "path", "required": True,
                                    "schema": {"type": "integer"}}],
                    "requestBody": _json_body("#/components/schemas/StatusRequest"),
                    "responses": {**_ok("Attendance record", "#/components/schemas/AttendanceRecord"),
                                  **_errors(400, 403, 404)}
                }
            },
            "/api/teacher/attendance/{attendance_id}": {
                "put": {
                    "tags": ["Teacher"], "summary": "Change a record's status", "security": SECURED,
                    "parameters": [{"name": "attendance_id", "in": "path", "required": True,
                                    "schema": {"type": "integer"}}],
                    "requestBody": _json_body("#/components/schemas/StatusRequest"),
                    "responses": {**_ok("Attendance record", "#/components/schemas/AttendanceRecord"),
                                  **_errors(400, 403, 404)}
                },
                "delete": {
                    "tags": ["Teacher"], "summary": "Delete a record", "security": SECURED,
                    "parameters": [{"name": "attendance_id", "in": "path", "required": True,
                                    "schema": {"type": "integer"}}],
                    "responses": {**_ok("Deleted"), **_errors(403, 404)}
                }
            },
            "/api/student/scan": {
                "post": {
                    "tags": ["Student"], "summary": "Scan a lecture QR code", "security": SECURED,
                    "requestBody": _json_body("#/components/schemas/ScanRequest"),
                    "responses": {**_ok("Attendance marked", "#/components/schemas/AttendanceRecord",
                                        status='201'),
                                  **_errors(400, 401, 403, 404, 409)}
                }
            },
            "/api/student/attendance": {
                "get": {
                    "tags": ["Student"], "summary": "Own attendance history", "security": SECURED,
                    "parameters": [
                        {"name": "subject", "in": "query", "schema": {"type": "string"}},
                        {"name": "start_date", "in": "query", "schema": {"type": "string", "format": "date"}},
                        {"name": "end_date", "in": "query", "schema": {"type": "string", "format": "date"}},
                        {"name": "page", "in": "query", "schema": {"type": "integer"}},
                        {"name": "per_page", "in": "query", "schema": {"type": "integer"}}
                    ],
                    "responses": {**_ok("Paginated records"), **_errors(401, 404)}
                }
            },
            "/api/student/attendance/summary": {
                "get": {
                    "tags": ["Student"], "summary": "Subject-wise and overall percentages",
                    "security": SECURED,
                    "responses": {**_ok("Summary"), **_errors(401, 404)}
                }
            }
        }
    }
