"""
Routes package for the equipment workflow service
Thin JSON blueprints over the business layer
"""

from flask import jsonify
from werkzeug.exceptions import HTTPException
from equiptrack.utils.logger import get_logger

logger = get_logger("equiptrack.routes")


def init_app(app):
    """Initialize all route blueprints with the Flask app"""
    logger.debug("Initializing route blueprints")

    from .commands import bp as commands_bp
    from .workflow import bp as workflow_bp

    app.register_blueprint(commands_bp, url_prefix='/api/commands')
    app.register_blueprint(workflow_bp, url_prefix='/api/workflow')

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        """Structured body for framework errors (400, 403, 404, 405, 429)"""
        return jsonify({
            'success': False,
            'message': e.description,
            'error': e.name.upper().replace(' ', '_'),
            'data': None,
            'suggestions': [],
        }), e.code

    logger.info("All route blueprints registered")
