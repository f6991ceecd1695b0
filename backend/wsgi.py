"""WSGI entry point for production deployment."""
from dotenv import load_dotenv
from qr_attendance import create_app

load_dotenv()

# QR_ATTENDANCE_ENV (or FLASK_ENV) picks the configuration
app = create_app()
