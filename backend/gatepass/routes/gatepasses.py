# Overview: Flask API routes for gate pass operations; parses input and returns JSON responses.

# backend/gatepass/routes/gatepasses.py
"""
Gate pass API routes.

Responses follow the envelope the web client expects:
    success: {"success": true, ...}
    failure: {"success": false, "message": "..."}
"""
from flask import Blueprint, Response, current_app, g, jsonify, request

from gatepass.decorators import require_auth
from gatepass.extensions import db
from gatepass.numbering import FormatError
from gatepass.services import gatepass_service, sequence_service
from gatepass.services.concurrency import commit_with_retry
from gatepass.services.export_service import export_gate_passes_csv
from gatepass.services.gatepass_service import GatePassNotFoundError
from gatepass.time_utils import utcnow
from gatepass.validation import ConflictError, ValidationError, coerce_boolean


gatepasses_bp = Blueprint("gatepasses", __name__, url_prefix="/api/gatepass")


def _error(message: str, status: int):
    return jsonify({"success": False, "message": message}), status


def _enabled_filter():
    raw = request.args.get("enabled")
    if raw is None or raw == "":
        return None
    if raw.lower() in ("true", "false"):
        return raw.lower() == "true"
    return coerce_boolean(raw)


@gatepasses_bp.get("")
@require_auth
def list_gate_passes():
    """
    List gate passes.

    Query params:
    - q: str (optional) - search pass number, destination, carried by, created by
    - enabled: bool (optional) - filter on the enabled flag
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - per_page: int (optional) - items per page (default 20, max 100)
    """
    result = gatepass_service.list_gate_passes(
        search=request.args.get("q"),
        enabled=_enabled_filter(),
        page=request.args.get("page", type=int),
        per_page=request.args.get("per_page", type=int),
    )
    items = result.pop("items")
    return jsonify({"success": True, "data": items, **result}), 200


@gatepasses_bp.get("/export")
@require_auth
def export_gate_passes():
    """Download the (optionally filtered) gate pass list as CSV."""
    passes = gatepass_service.search_gate_passes(
        search=request.args.get("q"),
        enabled=_enabled_filter(),
    )
    filename = f"gatepasses-{utcnow():%Y%m%d-%H%M%S}.csv"
    return Response(
        export_gate_passes_csv(passes),
        mimetype="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@gatepasses_bp.get("/next-number")
@require_auth
def preview_next_number():
    """
    Preview the number the next pass for a date would receive.

    Query params:
    - date: str (required) - pass date (ISO-8601 or DD-MM-YYYY)
    """
    pass_date = request.args.get("date")
    if not pass_date:
        return _error("date is required", 400)
    try:
        number = sequence_service.preview_next_pass_number(pass_date)
    except sequence_service.SequenceError as e:
        return _error(str(e), 400)
    return jsonify({"success": True, "gatepassNo": number}), 200


@gatepasses_bp.get("/<gate_pass_id>")
@require_auth
def get_gate_pass(gate_pass_id: str):
    try:
        gate_pass = gatepass_service.get_gate_pass(gate_pass_id)
    except GatePassNotFoundError as e:
        return _error(str(e), 404)
    return jsonify({"success": True, "data": gate_pass.to_dict()}), 200


@gatepasses_bp.post("")
@require_auth
def create_gate_pass():
    """
    Issue a gate pass.

    Request body (camelCase; PascalCase accepted):
    {
        "id": str (optional, client-generated),
        "gatepassNo": str (optional, client's proposal; server allocates),
        "date": str,
        "destination": str,
        "destinationId": int (optional),
        "carriedBy": str, "through": str, "mobileNo": str,
        "returnable": bool,
        "items": [{"description", "makeItem", "model", "serialNo", "qty"}]
    }

    Returns:
        201: {"success": true, "gatePassId": str, "gatepassNo": str, "data": {...}}
        400: Invalid request
        409: Duplicate id or number
    """
    payload = request.get_json(silent=True)

    try:
        gate_pass = gatepass_service.create_gate_pass(
            payload=payload,
            created_by=g.current_user.email,
        )
        commit_with_retry()
    except (ValidationError, sequence_service.SequenceError, FormatError) as e:
        db.session.rollback()
        return _error(str(e), 400)
    except ConflictError as e:
        db.session.rollback()
        return _error(str(e), 409)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create gate pass")
        return _error("Internal server error", 500)

    current_app.logger.info("Gate pass %s issued by %s", gate_pass.gatepass_no, g.current_user.email)
    return jsonify({
        "success": True,
        "message": "Gate pass created",
        "gatePassId": gate_pass.id,
        "gatepassNo": gate_pass.gatepass_no,
        "data": gate_pass.to_dict(),
    }), 201


@gatepasses_bp.put("/<gate_pass_id>")
@require_auth
def update_gate_pass(gate_pass_id: str):
    """
    Edit a gate pass. The pass number cannot change; disabled passes are read-only.

    Returns:
        200: Updated
        400: Invalid request
        404: Not found
        409: Pass is disabled
    """
    payload = request.get_json(silent=True)

    try:
        gate_pass = gatepass_service.update_gate_pass(
            gate_pass_id=gate_pass_id,
            payload=payload,
            modified_by=g.current_user.email,
        )
        commit_with_retry()
    except GatePassNotFoundError as e:
        db.session.rollback()
        return _error(str(e), 404)
    except ValidationError as e:
        db.session.rollback()
        return _error(str(e), 400)
    except ConflictError as e:
        db.session.rollback()
        return _error(str(e), 409)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to update gate pass %s", gate_pass_id)
        return _error("Internal server error", 500)

    return jsonify({
        "success": True,
        "message": "Gate pass updated",
        "data": gate_pass.to_dict(),
    }), 200


@gatepasses_bp.patch("/<gate_pass_id>/status")
@require_auth
def set_gate_pass_status(gate_pass_id: str):
    """
    Enable or disable a gate pass.

    Request body: {"isEnable": bool}
    """
    payload = request.get_json(silent=True) or {}
    if "isEnable" not in payload and "IsEnable" not in payload:
        return _error("Missing required field: isEnable", 400)
    enabled = coerce_boolean(payload.get("isEnable", payload.get("IsEnable")), True)

    try:
        gate_pass = gatepass_service.set_enabled(gate_pass_id=gate_pass_id, enabled=enabled)
        commit_with_retry()
    except GatePassNotFoundError as e:
        db.session.rollback()
        return _error(str(e), 404)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to change status of gate pass %s", gate_pass_id)
        return _error("Internal server error", 500)

    current_app.logger.info(
        "Gate pass %s %s by %s",
        gate_pass.gatepass_no,
        "enabled" if enabled else "disabled",
        g.current_user.email,
    )
    return jsonify({"success": True, "data": gate_pass.to_dict()}), 200


@gatepasses_bp.delete("/<gate_pass_id>")
@require_auth
def delete_gate_pass(gate_pass_id: str):
    """Remove a gate pass. Rollback path for failed creation flows only."""
    try:
        gatepass_service.delete_gate_pass(gate_pass_id)
        commit_with_retry()
    except GatePassNotFoundError as e:
        db.session.rollback()
        return _error(str(e), 404)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to delete gate pass %s", gate_pass_id)
        return _error("Internal server error", 500)

    current_app.logger.warning("Gate pass %s deleted by %s", gate_pass_id, g.current_user.email)
    return jsonify({"success": True, "message": "Gate pass deleted"}), 200
