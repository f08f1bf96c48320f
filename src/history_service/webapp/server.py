"""
Flask server for the calculation history.

Provides the REST endpoints the calculator client uses to keep its history:
list recent, save, delete one, clear all.
"""

import logging

from flask import Flask, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from ..store import HistoryStore, RecordNotFoundError, RecordValidationError
from .services import STORE_KEY, get_store, parse_calculation

logger = logging.getLogger(__name__)


def create_app(store: HistoryStore, cors_origins: str = "*") -> Flask:
    """
    Build the history API around an already connected store.

    Args:
        store: History store, owned by the caller (closed on shutdown)
        cors_origins: Value for Access-Control-Allow-Origin
    """
    app = Flask(__name__)
    app.extensions[STORE_KEY] = store

    @app.after_request
    def add_cors_headers(response):
        response.headers["Access-Control-Allow-Origin"] = cors_origins
        response.headers["Access-Control-Allow-Methods"] = "GET, POST, DELETE, OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        return response

    @app.errorhandler(SQLAlchemyError)
    def database_error(e):
        logger.exception("Database error on %s %s", request.method, request.path)
        return jsonify({"message": str(e)}), 500

    @app.route("/health", methods=["GET"])
    def health():
        return jsonify({"status": "ok"})

    @app.route("/api/history", methods=["GET"])
    def list_history():
        """
        Get the most recent calculations.

        Returns:
            [
                {"id": "...", "equation": "12 + 4", "result": "16", "createdAt": "..."},
                ...
            ]
            newest first, at most 10 entries
        """
        history = get_store().list_recent()
        return jsonify([record.to_dict() for record in history])

    @app.route("/api/history", methods=["POST"])
    def save_calculation():
        """
        Save a calculation.

        Expected JSON payload:
            {"equation": "12 + 4", "result": "16"}

        Returns:
            The created record with its id and createdAt, status 201
        """
        equation, result = parse_calculation(request.get_json(silent=True))

        if not equation or not result:
            return jsonify({"message": "Equation and result are required"}), 400

        try:
            record = get_store().create(equation, result)
        except RecordValidationError as e:
            return jsonify({"message": str(e)}), 400

        logger.info("Saved calculation %s: %s = %s", record.id, record.equation, record.result)
        return jsonify(record.to_dict()), 201

    @app.route("/api/history", methods=["DELETE"])
    def clear_history():
        """Delete every calculation."""
        count = get_store().clear()
        logger.info("Cleared %d calculations", count)
        return jsonify({"message": "History cleared"})

    @app.route("/api/history/<record_id>", methods=["DELETE"])
    def delete_calculation(record_id: str):
        """Delete one calculation by id."""
        try:
            get_store().delete(record_id)
        except RecordNotFoundError:
            return jsonify({"message": "Not found"}), 404

        return jsonify({"message": "Calculation deleted"})

    return app
