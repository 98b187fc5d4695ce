from flask import Blueprint

from . import __version__

bp = Blueprint("health", __name__)


@bp.get("/health")
def health():
    """Health check: {status, version}"""
    return {"status": "ok", "version": __version__}, 200
