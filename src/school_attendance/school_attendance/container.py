from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .biometric.client import FaceRecognitionClient
from .biometric.config import BiometricSettings
from .biometric.enrollment_service import FaceEnrollmentService
from .biometric.mysql_embedding_repository import MySQLFaceEmbeddingRepository
from .biometric.repository import FaceEmbeddingRepository
from .database.connection import DBConfig, DatabaseConnection
from .notifications.dispatcher import (
    LoggingNotificationSender,
    NotificationDispatcher,
    NotificationSender,
    ThreadPoolNotificationDispatcher,
    WebhookNotificationSender,
)
from .people.mysql_person_directory import MySQLPersonDirectory
from .people.repository import PersonDirectory
from .scanning.service import ScanResolver
from .settings.mysql_schedule_settings import MySQLScheduleSettings
from .settings.repository import ScheduleSettings


@dataclass(frozen=True)
class Container:
    biometric_settings: BiometricSettings

    people: PersonDirectory
    schedule_settings: ScheduleSettings
    attendance_repo: AttendanceRepository
    embeddings_repo: FaceEmbeddingRepository

    face_client: FaceRecognitionClient
    notifications: NotificationDispatcher
    scan_resolver: ScanResolver
    attendance_service: AttendanceService
    enrollment_service: FaceEnrollmentService


def build_notification_sender(notifications_config: Optional[dict]) -> NotificationSender:
    cfg = dict(notifications_config or {})
    if cfg.get("webhook_url"):
        return WebhookNotificationSender(str(cfg["webhook_url"]), timeout=float(cfg.get("timeout", 10)))
    return LoggingNotificationSender()


def wire_services(
    *,
    biometric_settings: BiometricSettings,
    people: PersonDirectory,
    schedule_settings: ScheduleSettings,
    attendance_repo: AttendanceRepository,
    embeddings_repo: FaceEmbeddingRepository,
    face_client: FaceRecognitionClient,
    notifications: NotificationDispatcher,
) -> Container:
    scan_resolver = ScanResolver(people, face_client, biometric_settings)
    attendance_service = AttendanceService(
        attendance_repo,
        schedule_settings,
        notifications,
        strategy_factory=AttendanceStrategyFactory(),
    )
    enrollment_service = FaceEnrollmentService(embeddings_repo, people, face_client, biometric_settings)

    return Container(
        biometric_settings=biometric_settings,
        people=people,
        schedule_settings=schedule_settings,
        attendance_repo=attendance_repo,
        embeddings_repo=embeddings_repo,
        face_client=face_client,
        notifications=notifications,
        scan_resolver=scan_resolver,
        attendance_service=attendance_service,
        enrollment_service=enrollment_service,
    )


def build_container(*, db_config: dict, biometric: Optional[dict] = None, notifications: Optional[dict] = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))
    biometric_settings = BiometricSettings.from_mapping(biometric)
    notifications_cfg = dict(notifications or {})

    return wire_services(
        biometric_settings=biometric_settings,
        people=MySQLPersonDirectory(conn),
        schedule_settings=MySQLScheduleSettings(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        embeddings_repo=MySQLFaceEmbeddingRepository(conn),
        face_client=FaceRecognitionClient(biometric_settings),
        notifications=ThreadPoolNotificationDispatcher(
            build_notification_sender(notifications_cfg),
            max_workers=int(notifications_cfg.get("max_workers", 4)),
        ),
    )
