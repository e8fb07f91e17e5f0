from urllib.parse import parse_qs, urlsplit

import pytest
from flask import abort

from errors import ApiError

AJAX = {'X-Requested-With': 'XMLHttpRequest'}


def failing(exc):
    def view():
        raise exc
    return view


def add_failures(app):
    app.add_url_rule('/api/test/teapot', 'teapot', failing(ApiError(418, "I'm a teapot")))
    app.add_url_rule('/api/test/crash', 'crash', failing(RuntimeError('disk on fire')))
    app.add_url_rule('/api/test/gone', 'gone', lambda: abort(404))
    app.add_url_rule('/reports/denied', 'denied', failing(ApiError(403, 'Not for you')))
    return app.test_client()


def redirect_target(resp):
    parts = urlsplit(resp.headers['Location'])
    return parts.path, parse_qs(parts.query, keep_blank_values=True)


def test_api_error_carries_status_and_message(app):
    resp = add_failures(app).get('/api/test/teapot')
    assert resp.status_code == 418
    assert resp.headers['Content-Type'] == 'application/json'
    body = resp.get_json()
    assert body['error'] is True
    assert body['message'] == "I'm a teapot"
    assert 'ApiError' in body['details']


def test_unexpected_error_is_500(app):
    resp = add_failures(app).get('/api/test/crash')
    assert resp.status_code == 500
    assert resp.get_json()['message'] == 'disk on fire'


def test_production_hides_details(production_app):
    resp = add_failures(production_app).get('/api/test/crash')
    assert resp.status_code == 500
    body = resp.get_json()
    assert body == {'error': True, 'message': 'disk on fire'}


def test_handler_raised_404_is_an_error_not_a_missing_route(app):
    resp = add_failures(app).get('/api/test/gone')
    assert resp.status_code == 404
    assert resp.get_json()['error'] is True


def test_page_errors_redirect_with_message_in_development(app):
    resp = add_failures(app).get('/reports/denied')
    assert resp.status_code == 302
    path, query = redirect_target(resp)
    assert path == '/error.html'
    assert query == {'code': ['403'], 'message': ['Not for you']}


def test_page_errors_redirect_without_message_in_production(production_app):
    resp = add_failures(production_app).get('/reports/denied')
    path, query = redirect_target(resp)
    assert path == '/error.html'
    assert query == {'code': ['403'], 'message': ['']}


def test_ajax_page_errors_get_json(app):
    resp = add_failures(app).get('/reports/denied', headers=AJAX)
    assert resp.status_code == 403
    assert resp.get_json()['message'] == 'Not for you'


@pytest.mark.parametrize('method', ['get', 'post', 'delete'])
def test_unknown_api_endpoint(client, method):
    resp = getattr(client, method)('/api/reports/weekly')
    assert resp.status_code == 404
    assert resp.headers['Content-Type'] == 'application/json'
    assert resp.get_json() == {
        'message': 'API endpoint not found',
        'path': '/api/reports/weekly',
        'method': method.upper(),
    }


def test_wrong_method_on_known_endpoint_is_not_found(client):
    resp = client.get('/api/auth/login')
    assert resp.status_code == 404
    assert resp.get_json()['message'] == 'API endpoint not found'


@pytest.mark.parametrize('method', ['get', 'post'])
def test_unknown_page_redirects_to_error_page(client, method):
    resp = getattr(client, method)('/missing-page.html')
    assert resp.status_code == 302
    path, query = redirect_target(resp)
    assert path == '/error.html'
    assert query == {'code': ['404'], 'message': ['Page not found']}


def test_not_found_logging_is_one_line_in_production(production_client, caplog):
    caplog.set_level('INFO')
    production_client.get('/api/nothing?x=1')
    assert '404 - GET /api/nothing?x=1' in caplog.text
    assert 'Headers' not in caplog.text


def test_not_found_logging_is_detailed_in_development(client, caplog):
    caplog.set_level('INFO')
    client.get('/api/nothing?x=1')
    assert '=== 404 Not Found ===' in caplog.text
    assert "Query: {'x': '1'}" in caplog.text


def test_redirect_message_is_escaped_like_encode_uri_component(app):
    app.add_url_rule('/reports/quirky', 'quirky', failing(ApiError(500, "Don't (panic)! *now*")))
    resp = app.test_client().get('/reports/quirky')
    assert resp.headers['Location'] == "/error.html?code=500&message=Don't%20(panic)!%20*now*"
