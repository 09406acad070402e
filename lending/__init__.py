from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from lending.config import Config
from lending.extensions import db, migrate, jwt, mail


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    mail.init_app(app)

    # models must be imported before create_all / migrations see the metadata
    from lending import models  # noqa: F401

    from lending.controllers.auth_controller import auth_bp
    from lending.controllers.book_controller import book_bp
    from lending.controllers.borrow_controller import borrow_bp
    from lending.controllers.admin_controller import admin_bp
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(book_bp, url_prefix="/books")
    app.register_blueprint(borrow_bp, url_prefix="/borrows")
    app.register_blueprint(admin_bp, url_prefix="/admin")

    @app.get("/health")
    def health():
        return jsonify({"ok": True})

    @app.errorhandler(Exception)
    def unhandled(e):
        if isinstance(e, HTTPException):
            return jsonify({"success": False, "message": e.description}), e.code
        db.session.rollback()
        app.logger.exception(f"[app] unhandled error: {e}")
        return jsonify({"success": False, "message": "Internal server error"}), 500

    from lending.tasks.scheduler import start_scheduler
    start_scheduler(app)

    return app
