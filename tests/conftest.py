from contextlib import contextmanager

import pytest

from app import create_app
from config import Config
from pages import HTML_PAGES
from routes.auth import issue_token

ROUTE_MODULES = ('routes.auth', 'routes.admin', 'routes.teacher', 'routes.student', 'routes.attendance')

ADMIN = {'id': 1, 'name': 'Ada Admin', 'email': 'admin@school.local', 'role': 'admin'}
TEACHER = {'id': 2, 'name': 'Tom Teacher', 'email': 'tom@school.local', 'role': 'teacher'}
STUDENT = {'id': 3, 'name': 'Sam Student', 'email': 'sam@school.local', 'role': 'student'}


class FakeCursor:
    """Stands in for a dictionary cursor; each fetch pops the next queued result."""

    def __init__(self):
        self.results = []
        self.executed = []
        self.lastrowid = 1

    def queue(self, *results):
        self.results.extend(results)
        return self

    def execute(self, sql, params=None):
        self.executed.append((' '.join(sql.split()), params))

    def _next(self):
        return self.results.pop(0) if self.results else None

    def fetchone(self):
        return self._next()

    def fetchall(self):
        return self._next() or []

    def close(self):
        self.closed = True


@pytest.fixture
def static_root(tmp_path):
    for name in ('index.html', 'reset.html') + HTML_PAGES:
        (tmp_path / name).write_text(f"<!DOCTYPE html><title>{name}</title>")
    (tmp_path / 'app.js').write_text("console.log('ready');")
    (tmp_path / 'style.css').write_text("body { margin: 0; }")
    (tmp_path / '.env').write_text("SECRET_KEY=do-not-serve")
    return str(tmp_path)


def build_app(static_root, env):
    app = create_app(Config(env=env, secret_key='test-secret', static_root=static_root))
    app.config['TESTING'] = True
    return app


@pytest.fixture
def app(static_root):
    return build_app(static_root, 'development')


@pytest.fixture
def production_app(static_root):
    return build_app(static_root, 'production')


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def production_client(production_app):
    return production_app.test_client()


@pytest.fixture
def fake_db(monkeypatch):
    cursor = FakeCursor()

    @contextmanager
    def fake_cursor(commit=False):
        yield cursor

    for module in ROUTE_MODULES:
        monkeypatch.setattr(f'{module}.db_cursor', fake_cursor)
    return cursor


@pytest.fixture
def auth_header(app):
    def make(user):
        with app.app_context():
            return {'Authorization': f"Bearer {issue_token(user)}"}
    return make
