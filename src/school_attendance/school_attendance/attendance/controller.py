from __future__ import annotations

import io

import qrcode
from flask import Flask, jsonify, request, send_file
from PIL import Image, UnidentifiedImageError

from ..common.http import current_tenant_id, json_body, json_errors
from ..common.validators import parse_person_kind, require_non_empty
from ..container import Container
from ..core.enums import Direction, ScanMode
from ..core.exceptions import NotFoundError, ValidationError


def decode_qr_image(stream) -> str:
    """Read the first QR code found in an uploaded photo."""

    # zbar is a system library; only the upload endpoints need it.
    from pyzbar.pyzbar import decode as pyzbar_decode

    try:
        img = Image.open(stream).convert("RGB")
    except (UnidentifiedImageError, OSError):
        raise ValidationError("El archivo no es una imagen válida")

    decoded = pyzbar_decode(img)
    if not decoded:
        raise ValidationError("No se detectó ningún código QR en la imagen")
    return decoded[0].data.decode("utf-8").strip()


def render_qr_png(data: str) -> io.BytesIO:
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=10,
        border=2,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    buf.seek(0)
    return buf


def register(app: Flask, container: Container) -> None:
    def _scan(direction: Direction, qr_code: str):
        tenant_id = current_tenant_id()
        person = container.scan_resolver.resolve(tenant_id, ScanMode.QR, qr_code)
        result = container.attendance_service.register(tenant_id, person, direction)
        return jsonify(result.to_dict()), 200

    @app.route("/api/scan/entry", methods=["POST"], endpoint="api_scan_entry")
    @json_errors
    def api_scan_entry():
        return _scan(Direction.ENTRY, json_body().get("qr_code", ""))

    @app.route("/api/scan/exit", methods=["POST"], endpoint="api_scan_exit")
    @json_errors
    def api_scan_exit():
        return _scan(Direction.EXIT, json_body().get("qr_code", ""))

    @app.route("/api/scan/entry/image", methods=["POST"], endpoint="api_scan_entry_image")
    @json_errors
    def api_scan_entry_image():
        """Same as the QR entry scan, but the code is read from an uploaded photo."""
        if "image" not in request.files:
            raise ValidationError("Falta el archivo de imagen")
        return _scan(Direction.ENTRY, decode_qr_image(request.files["image"].stream))

    @app.route("/api/scan/exit/image", methods=["POST"], endpoint="api_scan_exit_image")
    @json_errors
    def api_scan_exit_image():
        if "image" not in request.files:
            raise ValidationError("Falta el archivo de imagen")
        return _scan(Direction.EXIT, decode_qr_image(request.files["image"].stream))

    @app.route("/api/people/<kind>/<int:person_id>/qr.png", endpoint="api_person_qr_image")
    @json_errors
    def api_person_qr_image(kind: str, person_id: int):
        """Badge QR for a student or teacher (encodes the stored qr_code)."""
        tenant_id = current_tenant_id()
        person = container.people.get(tenant_id, parse_person_kind(kind), person_id)
        if not person:
            raise NotFoundError("Persona no encontrada")

        qr_code = require_non_empty(person.qr_code, "Código QR")
        return send_file(render_qr_png(qr_code), mimetype="image/png")
