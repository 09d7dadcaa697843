"""Base configuration shared by every environment."""
import os
from datetime import timedelta

class BaseConfig:
    """Base configuration."""
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = False

    # JWT Configuration
    JWT_SECRET_KEY = os.environ.get('JWT_SECRET_KEY') or 'jwt-secret-key-change-in-production'
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=8)
    JWT_ALGORITHM = 'HS256'

    # CORS
    CORS_ORIGINS = ["http://localhost:*", "http://127.0.0.1:*"]

    # Rate Limiting
    RATELIMIT_STORAGE_URI = os.environ.get('REDIS_URL') or 'memory://'

    # Attendance scoring: every N late marks count as one extra absence
    LATE_PENALTY_GROUP_SIZE = int(os.environ.get('LATE_PENALTY_GROUP_SIZE', 3))

    # QR check-in
    TOKEN_ROTATION_INTERVAL_SECONDS = int(os.environ.get('TOKEN_ROTATION_INTERVAL_SECONDS', 30))
    DEFAULT_GEOFENCE_RADIUS_METERS = int(os.environ.get('DEFAULT_GEOFENCE_RADIUS_METERS', 100))
    CHECKIN_BASE_URL = os.environ.get('CHECKIN_BASE_URL') or 'http://localhost:5000/attendance/mark'

    # Pagination
    DEFAULT_PAGE_SIZE = 20
    MAX_PAGE_SIZE = 100

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_FILE = os.environ.get('LOG_FILE', 'logs/app.log')
