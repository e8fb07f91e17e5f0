import logging
import os

from flask import Blueprint, abort, current_app, send_from_directory

from utils import is_api_path

logger = logging.getLogger(__name__)

pages_bp = Blueprint('pages', __name__)

HTML_PAGES = (
    'login.html',
    'admin-dashboard.html',
    'teacher-panel.html',
    'student-management.html',
    'teacher-management.html',
    'take-attendance.html',
    'view-reports.html',
    'notifications.html',
    'settings.html',
    'schedule.html',
    'error.html',
)

MIME_OVERRIDES = {
    '.js': 'application/javascript',
    '.css': 'text/css',
    '.html': 'text/html',
}


def send_static(filename):
    response = send_from_directory(current_app.config['STATIC_ROOT'], filename)
    mimetype = MIME_OVERRIDES.get(os.path.splitext(filename)[1].lower())
    if mimetype:
        response.headers['Content-Type'] = mimetype
    return response


def serve_page(filename):
    logger.info("Serving %s", filename)
    return send_static(filename)


@pages_bp.route('/')
def index():
    return serve_page('index.html')


@pages_bp.route('/reset.html')
def reset():
    return serve_page('reset.html')


def _page_view(filename):
    def view():
        return serve_page(filename)
    return view


for _page in HTML_PAGES:
    pages_bp.add_url_rule(f'/{_page}', _page.rsplit('.', 1)[0], _page_view(_page))


@pages_bp.route('/<path:filename>')
def static_asset(filename):
    # Dotfiles and anything under /api are never static assets.
    if is_api_path('/' + filename) or any(part.startswith('.') for part in filename.split('/')):
        abort(404)
    return send_static(filename)
