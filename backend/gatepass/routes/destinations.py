# Overview: Flask API routes for destination operations; parses input and returns JSON responses.

from flask import Blueprint, current_app, jsonify, request

from gatepass.decorators import require_auth
from gatepass.extensions import db
from gatepass.services import destination_service
from gatepass.services.concurrency import commit_with_retry
from gatepass.validation import ConflictError, ValidationError, coerce_boolean


destinations_bp = Blueprint("destinations", __name__, url_prefix="/api/dest")


@destinations_bp.get("")
@require_auth
def list_destinations():
    """
    List destinations.

    Query params:
    - active_only: bool (optional) - hide inactive destinations
    """
    active_only = coerce_boolean(request.args.get("active_only"), False)
    destinations = destination_service.list_destinations(include_inactive=not active_only)
    return jsonify({
        "success": True,
        "data": [d.to_dict() for d in destinations],
        "count": len(destinations),
    }), 200


@destinations_bp.post("/create")
@require_auth
def create_destination():
    """
    Create a destination.

    Request body:
    {
        "destinationName": str,
        "destinationCode": str,
        "emailID": str (optional),
        "isActive": bool | 0 | 1 (optional, default true)
    }

    Returns:
        201: {"success": true, "id": int, "message": str}
        400: Invalid request
        409: Code already exists
    """
    payload = request.get_json(silent=True) or {}

    try:
        destination = destination_service.create_destination(payload)
        commit_with_retry()
    except ValidationError as e:
        db.session.rollback()
        return jsonify({"success": False, "message": str(e)}), 400
    except ConflictError as e:
        db.session.rollback()
        return jsonify({"success": False, "message": str(e)}), 409
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create destination")
        return jsonify({"success": False, "message": "Internal server error"}), 500

    return jsonify({
        "success": True,
        "id": destination.id,
        "message": "Destination created",
        "data": destination.to_dict(),
    }), 201
