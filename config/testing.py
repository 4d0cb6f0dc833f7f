import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "school_attendance_test"),
}

BIOMETRIC = {
    "enabled": True,
    "service_url": "http://face-service.test",
    "service_timeout": 2,
    "enrollment": {"auto_enroll": True, "retry_failed_hours": 24},
}
NOTIFICATIONS = {"webhook_url": None}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = False
