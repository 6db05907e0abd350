import logging
import os
from logging.handlers import RotatingFileHandler

from flask import Flask, jsonify

from extensions import db, login_manager, migrate
from config import CONFIGS
from workflow.errors import WorkflowError

logger = logging.getLogger(__name__)


# ======================
# Logging
# ======================
def _configure_logging(app):
    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s - %(levelname)s - %(message)s"
    )

    if app.testing:
        return

    log_dir = app.config["LOG_DIR"]
    os.makedirs(log_dir, exist_ok=True)

    file_handler = RotatingFileHandler(
        os.path.join(log_dir, "workflow.log"),
        maxBytes=1_000_000,   # 1MB
        backupCount=5
    )
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(logging.Formatter(
        "%(asctime)s | %(levelname)s | %(message)s"
    ))

    root = logging.getLogger()
    root.setLevel(app.config.get("LOG_LEVEL", "INFO"))
    # create_app may run more than once per process
    if not any(getattr(h, "baseFilename", None) == file_handler.baseFilename for h in root.handlers):
        root.addHandler(file_handler)
    else:
        file_handler.close()


# ======================
# Auth
# ======================
def _configure_login(app):
    from models import User

    login_manager.init_app(app)

    @login_manager.user_loader
    def load_user(user_id):
        try:
            return db.session.get(User, int(user_id))
        except (TypeError, ValueError):
            return None

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({"error": "unauthorized", "message": "Login required."}), 401


# ======================
# Error Handlers
# ======================
def _register_error_handlers(app):

    @app.errorhandler(WorkflowError)
    def _handle_workflow_error(err):
        db.session.rollback()
        if err.operator_alert:
            logger.error("%s: %s %s", err.code, err.message, err.context or "")
        else:
            logger.info("%s: %s", err.code, err.message)
        return jsonify(err.to_dict()), err.http_status

    @app.errorhandler(401)
    def _handle_401(err):
        return jsonify({"error": "unauthorized", "message": "Login required."}), 401

    @app.errorhandler(403)
    def _handle_403(err):
        return jsonify({"error": "forbidden", "message": "You do not have permission to do that."}), 403

    @app.errorhandler(404)
    def _handle_404(err):
        return jsonify({"error": "not_found", "message": "Not found."}), 404

    @app.errorhandler(405)
    def _handle_405(err):
        return jsonify({"error": "method_not_allowed", "message": "Method not allowed."}), 405


# ======================
# App Factory
# ======================
def create_app(config_object=None):
    app = Flask(__name__)

    if config_object is None:
        config_object = CONFIGS.get(os.getenv("APP_CONFIG", "dev").strip().lower(), CONFIGS["dev"])
    app.config.from_object(config_object)

    os.makedirs(app.instance_path, exist_ok=True)

    _configure_logging(app)

    db.init_app(app)
    migrate.init_app(app, db)
    _configure_login(app)

    # Blueprints
    from workflow import workflow_bp
    from admin.routes import admin_bp
    from auth import auth_bp
    from notifications import notifications_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(workflow_bp)
    app.register_blueprint(notifications_bp)
    app.register_blueprint(admin_bp)

    _register_error_handlers(app)

    logger.info("App created with %s", getattr(config_object, "__name__", config_object))
    return app


if __name__ == "__main__":
    create_app().run()
