import os


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


def biometric_from_env(*, enabled_default: str = "0") -> dict:
    """Cấu hình nhận diện khuôn mặt, đọc từ biến môi trường."""
    return {
        "enabled": _flag("BIOMETRIC_ENABLED", enabled_default),
        "service_url": os.getenv("FACE_SERVICE_URL", "http://localhost:8001"),
        "service_timeout": float(os.getenv("FACE_SERVICE_TIMEOUT", "30")),
        "health_timeout": 5,
        "thresholds": {
            "match_high": float(os.getenv("BIOMETRIC_THRESHOLD_HIGH", "90")),
            "match_medium": float(os.getenv("BIOMETRIC_THRESHOLD_MEDIUM", "80")),
            "match_low": float(os.getenv("BIOMETRIC_THRESHOLD_LOW", "60")),
        },
        "distance_threshold": float(os.getenv("BIOMETRIC_DISTANCE_THRESHOLD", "0.6")),
        "search_limit": 5,
        "enrollment": {
            "auto_enroll": _flag("BIOMETRIC_AUTO_ENROLL", "1"),
            "retry_failed_hours": 24,
            "max_retries": 3,
        },
        "photo_base_url": os.getenv("PHOTO_BASE_URL") or None,
        "image": {
            "max_size_mb": 5,
            "allowed_formats": ["jpeg", "jpg", "png"],
        },
    }


def notifications_from_env() -> dict:
    return {
        "webhook_url": os.getenv("NOTIFICATION_WEBHOOK_URL") or None,
        "timeout": float(os.getenv("NOTIFICATION_TIMEOUT", "10")),
        "max_workers": int(os.getenv("NOTIFICATION_MAX_WORKERS", "4")),
    }
