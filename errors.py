"""Error types raised by the API routers and the handlers that render them.

API-like requests (``/api/...`` paths or AJAX calls) always get a JSON body;
page requests are redirected to ``/error.html`` with the status code and, in
development, the error message in the query string.
"""
import logging
import traceback
from urllib.parse import quote

from flask import current_app, jsonify, redirect, request
from werkzeug.exceptions import BadRequest, HTTPException

from utils import is_ajax, is_api_path, request_body, request_url

logger = logging.getLogger(__name__)

ERROR_PAGE = '/error.html'


class ApiError(Exception):
    """Raised by route handlers with an HTTP status and a client-facing message."""

    def __init__(self, status=500, message=None):
        super().__init__(message or 'Internal server error')
        self.status = status
        self.message = message


class InvalidJSONBody(BadRequest):
    """A request body declared as JSON that could not be decoded."""

    def __init__(self, body, cause=None):
        super().__init__(description=f"Failed to decode JSON object: {cause}")
        self.body = body


def error_status(err):
    if isinstance(err, ApiError):
        return err.status or 500
    if isinstance(err, HTTPException):
        return err.code or 500
    return getattr(err, 'status', None) or 500


def error_message(err):
    if isinstance(err, ApiError):
        return err.message
    if isinstance(err, HTTPException):
        return err.description
    return str(err) or None


def _development():
    return not current_app.config['PRODUCTION']


def handle_error(err):
    status = error_status(err)
    message = error_message(err)
    if status >= 500:
        logger.error("Server error: %s", err, exc_info=err)
    else:
        logger.warning("Server error: %s %s", status, message)

    if request.path.startswith('/api/') or is_ajax(request):
        body = {'error': True, 'message': message or 'Internal server error'}
        if _development():
            body['details'] = ''.join(traceback.format_exception(type(err), err, err.__traceback__))
        response = jsonify(body)
        response.status_code = status
        response.headers['Content-Type'] = 'application/json'
        return response

    # Same escaping as encodeURIComponent.
    message = quote(message or 'Unknown error', safe="!'()*") if _development() else ''
    return redirect(f"{ERROR_PAGE}?code={status}&message={message}")


def handle_invalid_json(err):
    if not is_api_path(request.path):
        return handle_error(err)
    logger.error("JSON parsing error: %s", err.description)
    return jsonify({'error': True, 'message': 'Invalid JSON in request body'}), 400


def _unmatched():
    # Routing failures leave url_rule unset; the static catch-all reports misses as 404 too.
    return request.url_rule is None or request.endpoint == 'pages.static_asset'


def handle_not_found(err):
    if not _unmatched():
        return handle_error(err)

    if current_app.config['PRODUCTION']:
        logger.info("404 - %s %s", request.method, request_url(request))
    else:
        logger.info("=== 404 Not Found ===")
        logger.info("Method: %s", request.method)
        logger.info("URL: %s", request_url(request))
        logger.info("Headers: %s", dict(request.headers))
        logger.info("Query: %s", request.args.to_dict())
        logger.info("Body: %s", request_body(request))
        logger.info("Params: %s", request.view_args or {})

    if request.path.startswith('/api/'):
        return jsonify({
            'message': 'API endpoint not found',
            'path': request.path,
            'method': request.method,
        }), 404
    return redirect(f"{ERROR_PAGE}?code=404&message=Page not found")


def register_error_handlers(app):
    app.register_error_handler(InvalidJSONBody, handle_invalid_json)
    app.register_error_handler(404, handle_not_found)
    # An unmatched method+path combination is a miss, not a 405.
    app.register_error_handler(405, handle_not_found)
    app.register_error_handler(Exception, handle_error)
