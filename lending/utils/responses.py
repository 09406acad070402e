from flask import current_app, jsonify

from lending.errors import LendingError


def json_error(message, code=400):
    return jsonify({"success": False, "message": message}), code


def lending_error(e: LendingError):
    current_app.logger.info(f"[api] rejected {e.code}: {e.message}")
    return jsonify({"success": False, "error": e.code, "message": e.message}), e.status_code
