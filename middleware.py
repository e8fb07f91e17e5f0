"""Request pipeline stages shared by every route.

Stages are plain ``before_request``/``after_request`` hooks. Flask runs
``after_request`` hooks in reverse registration order, so ``init_pipeline``
registers the request logger's response hook before the security and API
guard hooks: it then logs the final status and body.
"""
import json
import logging
import time
from datetime import datetime, timezone

from flask import Request, g, request
from flask_cors import CORS

from errors import InvalidJSONBody
from utils import is_ajax, is_api_path, request_body, request_url

logger = logging.getLogger(__name__)

CORS_OPTIONS = {
    # Allow-all in production too until the deployment origins are known.
    'origins': '*',
    'methods': ['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS'],
    'allow_headers': ['Content-Type', 'Authorization'],
    'supports_credentials': True,
}

SECURITY_HEADERS = {
    'X-Content-Type-Options': 'nosniff',
    'X-XSS-Protection': '1; mode=block',
    'X-Frame-Options': 'SAMEORIGIN',
    'Strict-Transport-Security': 'max-age=31536000; includeSubDomains',
}

HTML_LEAK_MARKER = '<!DOCTYPE html>'
HTML_LEAK_BODY = {'error': True, 'message': 'Internal server error'}


class JSONBodyRequest(Request):
    """Request whose JSON decode failures are reported as InvalidJSONBody."""

    def on_json_loading_failed(self, e):
        if e is not None:
            raise InvalidJSONBody(self.get_data(as_text=True), e)
        return super().on_json_loading_failed(e)


def parse_body():
    # Parse eagerly so a malformed body fails before any handler runs.
    # Only objects and arrays are accepted at the top level.
    if request.is_json and request.content_length:
        body = request.get_json()
        if not isinstance(body, (dict, list)):
            raise InvalidJSONBody(request.get_data(as_text=True), "top-level value must be an object or array")


def _now():
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds')


def _elapsed_ms():
    return int((time.perf_counter() - g.request_started) * 1000)


class RequestLogger:
    """Logs each request and its response. Pick one with make_request_logger."""

    def init_app(self, app):
        app.before_request(self.on_request)
        app.after_request(self.on_response)

    def on_request(self):
        g.request_started = time.perf_counter()

    def on_response(self, response):
        return response


class DevelopmentRequestLogger(RequestLogger):

    def on_request(self):
        super().on_request()
        logger.info("=== %s ===", _now())
        logger.info("%s %s", request.method, request_url(request))
        logger.info("Headers: %s", dict(request.headers))
        body = request_body(request)
        if body:
            logger.info("Body: %s", json.dumps(body, indent=2, default=str))
        if request.view_args:
            logger.info("Route params: %s", request.view_args)
        if request.args:
            logger.info("Query params: %s", request.args.to_dict())

    def on_response(self, response):
        if 'request_started' not in g:
            return response
        logger.info("Response Status: %s", response.status_code)
        if not response.direct_passthrough and not response.is_streamed:
            data = response.get_data(as_text=True)
            if data:
                logger.info("Response Data: %s", data)
        logger.info("Request took %dms", _elapsed_ms())
        return response


class ProductionRequestLogger(RequestLogger):

    def on_request(self):
        super().on_request()
        logger.info("%s - %s %s", _now(), request.method, request_url(request))

    def on_response(self, response):
        if 'request_started' in g:
            logger.info("%s - %s %s - %s - %dms", _now(), request.method,
                        request_url(request), response.status_code, _elapsed_ms())
        return response


def make_request_logger(config):
    if config.is_production:
        return ProductionRequestLogger()
    return DevelopmentRequestLogger()


def set_security_headers(response):
    for name, value in SECURITY_HEADERS.items():
        response.headers[name] = value
    return response


def guard_api_response(response):
    """Keep /api responses JSON, and never let an AJAX caller receive an HTML page."""
    if not is_api_path(request.path):
        return response
    response.headers['Content-Type'] = 'application/json'
    if is_ajax(request) and not response.direct_passthrough and not response.is_streamed:
        body = response.get_data(as_text=True)
        if body.strip().startswith(HTML_LEAK_MARKER):
            logger.error("Prevented HTML response for AJAX request to: %s", request_url(request))
            response.status_code = 500
            response.set_data(json.dumps(HTML_LEAK_BODY))
    return response


def init_pipeline(app, config):
    CORS(app, **CORS_OPTIONS)
    app.before_request(parse_body)
    make_request_logger(config).init_app(app)
    app.after_request(set_security_headers)
    app.after_request(guard_api_response)
