#!/usr/bin/env python3
"""
EPIC Hub Server
Flask server for projects, tasks and project files with a static web client
"""

import logging
import signal
import socket
import sys

from flask import Flask, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import InternalServerError, MethodNotAllowed, NotFound, RequestEntityTooLarge

from .api import CORS_HEADERS, api, is_api_path
from .blobs import BlobStore
from .config import configure_logging, load_config
from .static import mime_type_for, resolve_static_path
from .store import ResourceStore

logger = logging.getLogger(__name__)


def create_app(config=None):
    """Build the Flask application with a fresh in-memory store"""
    settings = load_config()
    if config:
        settings.update(config)

    app = Flask(__name__, static_folder=None)
    app.config.update(settings)
    app.extensions['epichub'] = {
        'store': ResourceStore(),
        'blobs': BlobStore(settings['UPLOADS_DIR']),
    }

    @app.before_request
    def api_preflight():
        if request.method == 'OPTIONS' and is_api_path(request.path):
            return '', 204

    # Registered before CORS() so these values are the last word on API responses
    @app.after_request
    def apply_api_cors(response):
        if is_api_path(request.path):
            for header, value in CORS_HEADERS.items():
                response.headers[header] = value
        return response

    CORS(app, resources={r"/api/*": {"origins": "*"}})
    app.register_blueprint(api)
    register_static_routes(app)
    register_error_handlers(app)

    logger.info(f"Uploads directory: {settings['UPLOADS_DIR']}")
    return app


def register_static_routes(app):
    @app.route('/health', provide_automatic_options=False)
    def health():
        return jsonify({'status': 'OK'})

    @app.route('/', defaults={'filename': ''}, provide_automatic_options=False)
    @app.route('/<path:filename>', provide_automatic_options=False)
    def serve_static(filename):
        # /api/... paths that no API route claimed
        if is_api_path(request.path):
            return jsonify({'error': 'Not Found'}), 404

        file_path = resolve_static_path(filename, app.config['CLIENT_DIR'])
        try:
            content = file_path.read_bytes()
        except OSError as e:
            logger.error(f"Error reading static file {file_path}: {e}")
            return 'Internal Server Error', 500, {'Content-Type': 'text/plain'}

        return content, 200, {'Content-Type': mime_type_for(file_path.name)}


def register_error_handlers(app):
    @app.errorhandler(NotFound)
    def handle_not_found(e):
        if is_api_path(request.path):
            return jsonify({'error': 'Not Found'}), 404
        return 'Not Found', 404, {'Content-Type': 'text/plain'}

    @app.errorhandler(MethodNotAllowed)
    def handle_method_not_allowed(e):
        if is_api_path(request.path):
            return jsonify({'error': 'Not Found'}), 404
        return 'Method Not Allowed', 405, {'Content-Type': 'text/plain'}

    @app.errorhandler(RequestEntityTooLarge)
    def handle_too_large(e):
        logger.warning(f"Rejected oversized body on {request.method} {request.path}")
        if is_api_path(request.path):
            return jsonify({'error': 'Request body too large'}), 413
        return 'Request Entity Too Large', 413, {'Content-Type': 'text/plain'}

    @app.errorhandler(InternalServerError)
    def handle_internal_error(e):
        if is_api_path(request.path):
            return jsonify({'error': 'Internal Server Error'}), 500
        return 'Internal Server Error', 500, {'Content-Type': 'text/plain'}


def check_port_available(port):
    """Check if port is available"""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        return s.connect_ex(('localhost', port)) != 0


def signal_handler(sig, frame):
    logger.info('🛑 Gracefully shutting down server...')
    sys.exit(0)


def main():
    settings = load_config()
    configure_logging(settings['LOG_LEVEL'])
    port = settings['PORT']

    if not check_port_available(port):
        logger.error(f"❌ Port {port} is already in use!")
        logger.info("🔧 Try:")
        logger.info(f"   1. Stop existing process: lsof -ti:{port} | xargs kill")
        logger.info(f"   2. Use different port: PORT=3002 epichub")
        sys.exit(1)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    app = create_app(settings)

    print(f"""
🚀 EPIC Hub Server Starting...
========================================
📁 Uploads directory: {settings['UPLOADS_DIR']}
🖥️  Client directory:  {settings['CLIENT_DIR']}
🌐 Local URL:  http://localhost:{port}
🔧 API endpoints: http://localhost:{port}/api/

⏹️  Press Ctrl+C to stop the server
========================================
    """)

    try:
        app.run(
            host=settings['HOST'],
            port=port,
            debug=False,
            threaded=True,
            use_reloader=False
        )
    except KeyboardInterrupt:
        logger.info("🛑 Server stopped by user")
    except Exception as e:
        logger.error(f"❌ Server error: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
