"""
Flask API for record validation audit: invalid-record ledger, validation
actions, official-record promotion and guarded record writes.
"""

from flask import Flask, request, session, jsonify, send_file
import os
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from dotenv import load_dotenv

load_dotenv()

from recordguard.export import INVALID_RECORD_COLUMNS, csv_bytes, to_rows
from recordguard.field_validation import validate_student_record, get_error_summary
from recordguard.guarded_writes import GuardedRecordWriter
from recordguard.invalid_record_logger import InvalidRecordLogger
from recordguard.logging_setup import configure_logging
from recordguard.official_records import OfficialRecordService
from recordguard.record_guard import RecordValidationGuard
from recordguard.record_store import RecordStore, get_default_store
from recordguard.schema import ActionType, RecordKind
from recordguard.validation_action_logger import ValidationActionLogger

configure_logging()

app = Flask(__name__)
app.secret_key = os.environ.get("FLASK_SECRET_KEY", os.urandom(32))
app.logger.setLevel(logging.INFO)

_store: Optional[RecordStore] = None


def get_store() -> RecordStore:
    """Store from app.config["RECORD_STORE"] when set (tests), otherwise built once from env."""
    global _store
    configured = app.config.get("RECORD_STORE")
    if configured is not None:
        return configured
    if _store is None:
        _store = get_default_store()
    return _store


def get_services() -> Dict[str, Any]:
    store = get_store()
    action_logger = ValidationActionLogger(store)
    invalid_logger = InvalidRecordLogger(store)
    guard = RecordValidationGuard(store)
    return {
        "store": store,
        "action_logger": action_logger,
        "invalid_logger": invalid_logger,
        "official": OfficialRecordService(store, action_logger),
        "writer": GuardedRecordWriter(store, guard, invalid_logger),
    }


def require_auth():
    """Check if user is authenticated."""
    if "user_id" not in session or not session.get("user_id"):
        return False
    return True


def _limit_arg(default: int = 100) -> int:
    try:
        return max(1, min(int(request.args.get("limit", default)), 1000))
    except (TypeError, ValueError):
        return default


@app.route("/api/invalid-records")
def list_invalid_records():
    """Rejected write attempts, newest first, filtered by type/entity/user/date range."""
    if not require_auth():
        return jsonify({"success": False, "error": "Not authenticated"}), 401

    record_type = request.args.get("record_type") or None
    if record_type and record_type not in {k.value for k in RecordKind}:
        return jsonify({"success": False, "error": f"Unknown record type: {record_type}"}), 400

    invalid_logger = get_services()["invalid_logger"]
    records = invalid_logger.query_invalid_records(
        record_type=record_type,
        entity_id=request.args.get("entity_id") or None,
        user_id=request.args.get("user_id") or None,
        from_date=request.args.get("from_date") or None,
        to_date=request.args.get("to_date") or None,
        limit_results=_limit_arg(),
    )
    return jsonify({"success": True, "records": to_rows(records), "count": len(records)})


@app.route("/api/invalid-records/summary")
def invalid_records_summary():
    if not require_auth():
        return jsonify({"success": False, "error": "Not authenticated"}), 401
    summary = get_services()["invalid_logger"].get_invalid_records_summary()
    return jsonify({"success": True, "summary": summary})


@app.route("/api/invalid-records/export")
def export_invalid_records():
    """CSV of invalid record logs; columns match the logged fields."""
    if not require_auth():
        return jsonify({"success": False, "error": "Not authenticated"}), 401

    record_type = request.args.get("record_type") or None
    if record_type and record_type not in {k.value for k in RecordKind}:
        return jsonify({"success": False, "error": f"Unknown record type: {record_type}"}), 400

    records = get_services()["invalid_logger"].query_invalid_records(
        record_type=record_type,
        entity_id=request.args.get("entity_id") or None,
        from_date=request.args.get("from_date") or None,
        to_date=request.args.get("to_date") or None,
        limit_results=_limit_arg(1000),
    )
    csv_buffer = csv_bytes(to_rows(records), INVALID_RECORD_COLUMNS)
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d")
    return send_file(
        csv_buffer,
        mimetype="text/csv",
        as_attachment=True,
        download_name=f"invalid_records_{stamp}_{len(records)}_records.csv",
    )


@app.route("/api/validation-actions")
def list_validation_actions():
    if not require_auth():
        return jsonify({"success": False, "error": "Not authenticated"}), 401

    action_type = request.args.get("action_type") or None
    if action_type and action_type not in {a.value for a in ActionType}:
        return jsonify({"success": False, "error": f"Unknown action type: {action_type}"}), 400

    logs = get_services()["action_logger"].get_validation_logs(
        admin_id=request.args.get("admin_id") or None,
        action_type=action_type,
        start_date=request.args.get("start_date") or None,
        end_date=request.args.get("end_date") or None,
        limit=_limit_arg(),
    )
    return jsonify({"success": True, "actions": to_rows(logs), "count": len(logs)})


@app.route("/api/validation-statistics")
def validation_statistics():
    if not require_auth():
        return jsonify({"success": False, "error": "Not authenticated"}), 401

    services = get_services()
    actions = services["action_logger"].get_validation_statistics()
    actions["recent_actions"] = to_rows(actions["recent_actions"])
    return jsonify({
        "success": True,
        "students": services["official"].get_validation_statistics(),
        "actions": actions,
    })


@app.route("/api/students/<student_id>/official", methods=["POST"])
def mark_student_official(student_id):
    """Promote a student after re-checking its required fields."""
    if not require_auth():
        return jsonify({"success": False, "error": "Not authenticated"}), 401

    services = get_services()
    store = services["store"]
    try:
        student = store.get(store.collections.students, store.collections.student_key, student_id)
    except Exception as e:
        app.logger.error(f"❌ Could not load student {student_id}: {e}")
        return jsonify({"success": False, "error": "Failed to load student"}), 500
    if not student:
        return jsonify({"success": False, "error": "Student not found"}), 404

    result = validate_student_record(student)
    if not result.is_valid:
        return jsonify({
            "success": False,
            "error": get_error_summary(result),
            "validation_errors": [{"field": e.field, "message": e.error} for e in result.errors],
        }), 400

    payload = request.get_json(silent=True) or {}
    name = payload.get("student_name") or f"{student.get('first_name', '')} {student.get('last_name', '')}".strip()
    if services["official"].mark_as_official(student_id, session["user_id"], session.get("user_email"), name or None):
        return jsonify({"success": True})
    return jsonify({"success": False, "error": "Failed to update record"}), 500


@app.route("/api/students/<student_id>/reset", methods=["POST"])
def reset_student_validation(student_id):
    if not require_auth():
        return jsonify({"success": False, "error": "Not authenticated"}), 401

    payload = request.get_json(silent=True) or {}
    reason = (payload.get("reason") or "").strip()
    if not reason:
        return jsonify({"success": False, "error": "A reason is required to reset validation"}), 400

    ok = get_services()["official"].reset_validation_status(
        student_id,
        session["user_id"],
        session.get("user_email"),
        payload.get("student_name") or "Unknown Student",
        reason,
    )
    if ok:
        return jsonify({"success": True})
    return jsonify({"success": False, "error": "Failed to reset validation status"}), 500


@app.route("/api/records/<kind>", methods=["POST"])
def save_record(kind):
    """Guarded write for grade / attendance / report records."""
    if not require_auth():
        return jsonify({"success": False, "error": "Not authenticated"}), 401
    if kind not in {k.value for k in RecordKind}:
        return jsonify({"success": False, "error": f"Unknown record kind: {kind}"}), 404

    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"success": False, "error": "Expected a JSON object"}), 400

    result = get_services()["writer"].save_record(
        kind,
        data,
        user_email=session.get("user_email"),
        ip_address=request.remote_addr,
        user_agent=request.headers.get("User-Agent"),
    )
    if result["success"]:
        return jsonify(result), 201
    if "validation_errors" in result:
        return jsonify(result), 400
    return jsonify(result), 500


if __name__ == "__main__":
    port = int(os.environ.get("PORT", os.environ.get("FLASK_PORT", 5000)))
    app.run(host="0.0.0.0", port=port, debug=False)
