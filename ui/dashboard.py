"""Front desk board web application.

This module exposes a small Flask application that serves read-only board
snapshots and forwards user actions (add, rename, delete, availability,
editing, clear) to a ``FrontDeskBoard``. Rendering is left to the client;
every response uses the ``{"success": ..., "data"|"error": ...}`` envelope.
"""
from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional, Tuple

from flask import Flask, Response, jsonify, request

from scheduling import (
    ActionOutcome,
    AppointmentNotFound,
    FrontDeskBoard,
    Period,
    UnknownDoctorError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def _ok(data: Any, *, status: int = 200) -> Tuple[Response, int]:
    return jsonify({"success": True, "data": data}), status


def _error(message: str, status: int) -> Tuple[Response, int]:
    return jsonify({"success": False, "error": message}), status


def _outcome(outcome: ActionOutcome, *, status: int = 200) -> Tuple[Response, int]:
    return _ok(outcome.to_dict(), status=status)


def _payload() -> Dict[str, Any]:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def _patient_name(body: Dict[str, Any]) -> Optional[str]:
    return body.get("patientName") or body.get("patient_name")


def _resolve_period(value: str) -> Period:
    try:
        return Period(value)
    except ValueError as exc:
        raise LookupError(f"Unknown period {value!r}") from exc


def create_app(board: FrontDeskBoard) -> Flask:
    """Build the Flask application around an already constructed board."""

    app = Flask(__name__)

    @app.errorhandler(ValidationError)
    def handle_validation(exc: ValidationError):
        return _error(str(exc), 400)

    @app.errorhandler(AppointmentNotFound)
    @app.errorhandler(UnknownDoctorError)
    @app.errorhandler(LookupError)
    def handle_lookup(exc: LookupError):
        return _error(str(exc), 404)

    @app.route("/board", methods=["GET"])
    def board_snapshot():
        """Return the whole board as JSON."""
        return _ok(board.snapshot())

    @app.route("/stats", methods=["GET"])
    def stats():
        return _ok(board.statistics())

    @app.route("/board/reload", methods=["POST"])
    def reload_board():
        online = board.reload()
        return _ok({"online": online})

    @app.route("/board/<period>/<doctor>", methods=["GET"])
    def list_queue(period: str, doctor: str):
        controller = board.period(_resolve_period(period))
        term = request.args.get("q", "")
        return _ok([record.to_dict() for record in controller.search(doctor, term)])

    @app.route("/board/<period>/<doctor>/patients", methods=["GET"])
    def patient_list(period: str, doctor: str):
        controller = board.period(_resolve_period(period))
        return _ok(controller.patient_list(doctor, request.args.get("q", "")))

    @app.route("/board/<period>/<doctor>/appointments", methods=["POST"])
    def add_appointment(period: str, doctor: str):
        controller = board.period(_resolve_period(period))
        outcome = controller.add(doctor, _patient_name(_payload()))
        return _outcome(outcome, status=201)

    @app.route("/board/<period>/<doctor>/appointments/<appointment_id>", methods=["PUT"])
    def rename_appointment(period: str, doctor: str, appointment_id: str):
        controller = board.period(_resolve_period(period))
        outcome = controller.rename(doctor, appointment_id, _patient_name(_payload()))
        return _outcome(outcome)

    @app.route("/board/<period>/<doctor>/appointments/<appointment_id>", methods=["DELETE"])
    def delete_appointment(period: str, doctor: str, appointment_id: str):
        controller = board.period(_resolve_period(period))
        return _outcome(controller.remove(doctor, appointment_id))

    @app.route("/board/<period>/<doctor>/availability", methods=["POST"])
    def toggle_availability(period: str, doctor: str):
        controller = board.period(_resolve_period(period))
        outcome = controller.toggle_availability(doctor, _patient_name(_payload()))
        return _outcome(outcome)

    @app.route("/board/<period>/<doctor>/editing", methods=["POST"])
    def begin_edit(period: str, doctor: str):
        controller = board.period(_resolve_period(period))
        body = _payload()
        appointment_id = body.get("appointmentId") or body.get("id")
        if not appointment_id:
            raise ValidationError("appointmentId is required")
        return _outcome(controller.begin_edit(doctor, str(appointment_id)))

    @app.route("/board/<period>/<doctor>/editing", methods=["DELETE"])
    def cancel_edit(period: str, doctor: str):
        board.period(_resolve_period(period)).cancel_edit(doctor)
        return _ok({"editing": None})

    @app.route("/board/<period>/clear", methods=["POST"])
    def clear_period(period: str):
        controller = board.period(_resolve_period(period))
        doctor = _payload().get("doctor")
        outcome = controller.clear(doctor)
        logger.info("Cleared %s appointments (%s): %s", period, outcome.status.value, outcome.value)
        return _outcome(outcome)

    return app


if __name__ == "__main__":
    from connector import BoardAPIClient

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    front_desk = FrontDeskBoard(BoardAPIClient())
    front_desk.start()
    create_app(front_desk).run(
        host="0.0.0.0",
        port=int(os.environ.get("PORT", "5000")),
        debug=False,
    )
