from flask import Blueprint, g, jsonify, request

from db import db_cursor
from errors import ApiError
from models import STUDENT_SELECT, TEACHER_SELECT
from routes.auth import teacher_required

teacher_bp = Blueprint('teacher', __name__)


@teacher_bp.route('/profile')
@teacher_required
def profile():
    with db_cursor() as cur:
        cur.execute(TEACHER_SELECT + ' WHERE t.user_id=%s', (g.user['id'],))
        teacher = cur.fetchone()
    if not teacher:
        raise ApiError(404, "Teacher profile not found")
    return jsonify(teacher)


@teacher_bp.route('/students')
@teacher_required
def students():
    class_name = request.args.get('class_name')
    with db_cursor() as cur:
        if class_name:
            cur.execute(STUDENT_SELECT + ' WHERE s.class_name=%s ORDER BY s.roll_number', (class_name,))
        else:
            cur.execute(STUDENT_SELECT + ' ORDER BY s.class_name, s.roll_number')
        rows = cur.fetchall()
    return jsonify(rows)


@teacher_bp.route('/classes')
@teacher_required
def classes():
    with db_cursor() as cur:
        cur.execute('SELECT DISTINCT class_name FROM students ORDER BY class_name')
        rows = cur.fetchall()
    return jsonify([r['class_name'] for r in rows])
