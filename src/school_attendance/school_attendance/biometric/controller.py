from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import current_tenant_id, json_body, json_errors
from ..common.validators import parse_person_kind, require_positive_int
from ..container import Container
from ..core.enums import Direction, ScanMode
from ..core.exceptions import FeatureDisabledError, NotFoundError, ValidationError
from ..scanning.model import ScanFilters


def _optional_int(value, field_name: str):
    if value in (None, ""):
        return None
    return require_positive_int(value, field_name)


def register(app: Flask, container: Container) -> None:
    settings = container.biometric_settings

    def _require_enabled() -> None:
        if not settings.enabled:
            raise FeatureDisabledError("El reconocimiento facial no está habilitado")

    def _face_scan(direction: Direction):
        _require_enabled()
        tenant_id = current_tenant_id()
        data = json_body()

        image_base64 = data.get("image_base64")
        if not image_base64:
            raise ValidationError("image_base64 es requerido")

        filters = ScanFilters(
            classroom_id=_optional_int(data.get("classroom_id"), "classroom_id"),
            level=(data.get("level") or None),
        )
        person = container.scan_resolver.resolve(tenant_id, ScanMode.FACE, image_base64, filters)
        result = container.attendance_service.register(tenant_id, person, direction)
        return jsonify(result.to_dict()), 200

    @app.route("/api/biometric/scan/entry", methods=["POST"], endpoint="api_biometric_scan_entry")
    @json_errors
    def api_biometric_scan_entry():
        return _face_scan(Direction.ENTRY)

    @app.route("/api/biometric/scan/exit", methods=["POST"], endpoint="api_biometric_scan_exit")
    @json_errors
    def api_biometric_scan_exit():
        return _face_scan(Direction.EXIT)

    @app.route("/api/biometric/status/<kind>/<int:person_id>", methods=["GET"], endpoint="api_biometric_status")
    @json_errors
    def api_biometric_status(kind: str, person_id: int):
        tenant_id = current_tenant_id()
        status = container.enrollment_service.status(tenant_id, parse_person_kind(kind), person_id)
        return jsonify({"success": True, "data": status}), 200

    @app.route("/api/biometric/enroll", methods=["POST"], endpoint="api_biometric_enroll")
    @json_errors
    def api_biometric_enroll():
        """Enroll (or re-enroll) one person from their stored photo, synchronously."""
        _require_enabled()
        tenant_id = current_tenant_id()
        data = json_body()

        kind = parse_person_kind(data.get("type"))
        person_id = require_positive_int(data.get("id"), "id")
        person = container.people.get(tenant_id, kind, person_id)
        if not person:
            raise NotFoundError("Persona no encontrada")

        embedding = container.enrollment_service.enroll(person)
        return jsonify({
            "success": embedding.is_active,
            "message": "Registro facial completado" if embedding.is_active else "No se pudo registrar el rostro",
            "data": embedding.to_status_dict(),
        }), 200

    @app.route("/api/biometric/enroll/<kind>/<int:person_id>", methods=["DELETE"], endpoint="api_biometric_unenroll")
    @json_errors
    def api_biometric_unenroll(kind: str, person_id: int):
        tenant_id = current_tenant_id()
        embedding = container.enrollment_service.get_embedding(tenant_id, parse_person_kind(kind), person_id)
        if not embedding:
            raise NotFoundError("La persona no tiene registro facial")

        remote_deleted = container.enrollment_service.delete(embedding)
        return jsonify({
            "success": True,
            "message": "Registro facial eliminado",
            "data": {"remote_deleted": remote_deleted},
        }), 200

    @app.route("/api/biometric/retry", methods=["POST"], endpoint="api_biometric_retry")
    @json_errors
    def api_biometric_retry():
        _require_enabled()
        tenant_id = current_tenant_id()
        hours = json_body().get("older_than_hours")
        if hours is not None:
            try:
                hours = int(hours)
            except (TypeError, ValueError):
                raise ValidationError("older_than_hours debe ser un número entero")
            if hours < 0:
                raise ValidationError("older_than_hours no puede ser negativo")

        stats = container.enrollment_service.retry_failed(tenant_id, hours)
        return jsonify({"success": True, "data": stats.to_dict()}), 200

    @app.route("/api/biometric/health", methods=["GET"], endpoint="api_biometric_health")
    @json_errors
    def api_biometric_health():
        """Never fails: reports whether the face service answers and how many faces it holds."""
        tenant_id = current_tenant_id()
        healthy = settings.enabled and container.face_client.is_healthy()
        return jsonify({
            "success": True,
            "data": {
                "biometric_enabled": settings.enabled,
                "service_healthy": healthy,
                "enrolled_count": container.face_client.enrolled_count(tenant_id) if healthy else 0,
            },
        }), 200
