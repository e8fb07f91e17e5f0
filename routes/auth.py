import logging
from functools import wraps

from flask import Blueprint, current_app, g, jsonify, request
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from werkzeug.security import check_password_hash, generate_password_hash

from db import db_cursor
from errors import ApiError
from utils import request_data

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)

MIN_PASSWORD_LENGTH = 6


def _serializer():
    return URLSafeTimedSerializer(current_app.config['SECRET_KEY'], salt='auth-token')


def issue_token(user):
    return _serializer().dumps({'user_id': user['id'], 'role': user['role']})


def load_token(token):
    try:
        return _serializer().loads(token, max_age=current_app.config['TOKEN_MAX_AGE'])
    except SignatureExpired:
        raise ApiError(401, "Token has expired. Please login again.")
    except BadSignature:
        raise ApiError(401, "Invalid authentication token")


def public_user(user):
    return {k: user[k] for k in ('id', 'name', 'email', 'role')}


def token_required(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        header = request.headers.get('Authorization', '')
        if not header.startswith('Bearer '):
            raise ApiError(401, "Authentication token is missing")
        data = load_token(header[len('Bearer '):].strip())
        with db_cursor() as cur:
            cur.execute('SELECT id, name, email, role FROM users WHERE id=%s', (data['user_id'],))
            user = cur.fetchone()
        if not user:
            raise ApiError(401, "User not found")
        g.user = user
        return f(*args, **kwargs)
    return decorated


def role_required(*roles):
    def decorator(f):
        @wraps(f)
        @token_required
        def decorated(*args, **kwargs):
            if g.user['role'] not in roles:
                logger.warning("Unauthorized access attempt by %s (role: %s)", g.user['email'], g.user['role'])
                raise ApiError(403, "Insufficient permissions")
            return f(*args, **kwargs)
        return decorated
    return decorator


admin_required = role_required('admin')
teacher_required = role_required('teacher')
student_required = role_required('student')
staff_required = role_required('admin', 'teacher')


@auth_bp.route('/login', methods=['POST'])
def login():
    data = request_data(request)
    email = (data.get('email') or '').strip()
    password = data.get('password') or ''
    if not email or not password:
        raise ApiError(400, "Email and password are required")

    with db_cursor() as cur:
        cur.execute('SELECT * FROM users WHERE email=%s', (email,))
        user = cur.fetchone()
    if not user or not check_password_hash(user['password'], password):
        raise ApiError(401, "Invalid email or password")

    logger.info("%s logged in as %s", email, user['role'])
    return jsonify({'token': issue_token(user), 'user': public_user(user)})


@auth_bp.route('/verify')
@token_required
def verify():
    return jsonify({'valid': True, 'user': public_user(g.user)})


@auth_bp.route('/change-password', methods=['POST'])
@token_required
def change_password():
    data = request_data(request)
    new_password = data.get('new_password') or ''
    if len(new_password) < MIN_PASSWORD_LENGTH:
        raise ApiError(400, f"New password must be at least {MIN_PASSWORD_LENGTH} characters")

    with db_cursor(commit=True) as cur:
        cur.execute('SELECT password FROM users WHERE id=%s', (g.user['id'],))
        row = cur.fetchone()
        if not row or not check_password_hash(row['password'], data.get('current_password') or ''):
            raise ApiError(401, "Current password is incorrect")
        cur.execute('UPDATE users SET password=%s WHERE id=%s',
                    (generate_password_hash(new_password), g.user['id']))
    return jsonify({'message': "Password updated successfully"})
