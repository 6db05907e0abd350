from flask import Blueprint

workflow_bp = Blueprint(
    "workflow",
    __name__,
    url_prefix="/api"
)

# IMPORTANT: import routes after blueprint definition
from . import routes  # noqa: E402,F401
