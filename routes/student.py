from flask import Blueprint, g, jsonify

from db import db_cursor
from errors import ApiError
from models import ATTENDANCE_SELECT, STUDENT_SELECT
from routes.auth import student_required
from utils import attendance_summary, safe_date_to_str

student_bp = Blueprint('student', __name__)


def _own_profile(cur):
    cur.execute(STUDENT_SELECT + ' WHERE s.user_id=%s', (g.user['id'],))
    student = cur.fetchone()
    if not student:
        raise ApiError(404, "Student profile not found")
    return student


@student_bp.route('/profile')
@student_required
def profile():
    with db_cursor() as cur:
        student = _own_profile(cur)
    return jsonify(student)


@student_bp.route('/attendance')
@student_required
def attendance():
    with db_cursor() as cur:
        student = _own_profile(cur)
        cur.execute(ATTENDANCE_SELECT + ' WHERE a.student_id=%s ORDER BY a.date DESC', (student['id'],))
        rows = cur.fetchall()
    for r in rows:
        r['date'] = safe_date_to_str(r['date'])
    return jsonify({'records': rows, 'summary': attendance_summary(rows)})
