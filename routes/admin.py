from datetime import date

from flask import Blueprint, jsonify, request

from db import db_cursor
from errors import ApiError
from models import ATTENDANCE_STATUSES, STUDENT_SELECT, TEACHER_SELECT, create_user, update_user
from routes.auth import admin_required
from utils import request_data

admin_bp = Blueprint('admin', __name__)


def _required(data, *fields):
    values = [str(data.get(f) or '').strip() for f in fields]
    if not all(values):
        raise ApiError(400, f"{', '.join(fields)} are required")
    return values


# --- Dashboard ---
@admin_bp.route('/stats')
@admin_required
def stats():
    with db_cursor() as cur:
        cur.execute('SELECT COUNT(*) AS n FROM teachers')
        teachers = cur.fetchone()['n']
        cur.execute('SELECT COUNT(*) AS n FROM students')
        students = cur.fetchone()['n']
        cur.execute('SELECT status, COUNT(*) AS n FROM attendance WHERE date=%s GROUP BY status',
                    (date.today(),))
        today = {r['status']: r['n'] for r in cur.fetchall()}
    return jsonify({
        'teachers': teachers,
        'students': students,
        'today': {s: today.get(s, 0) for s in ATTENDANCE_STATUSES},
    })


# --- TEACHERS ---
@admin_bp.route('/teachers')
@admin_required
def teachers():
    with db_cursor() as cur:
        cur.execute(TEACHER_SELECT + ' ORDER BY u.name')
        rows = cur.fetchall()
    return jsonify(rows)


@admin_bp.route('/teachers', methods=['POST'])
@admin_required
def add_teacher():
    data = request_data(request)
    name, email, password = _required(data, 'name', 'email', 'password')

    with db_cursor(commit=True) as cur:
        user_id = create_user(cur, name, email, password, 'teacher')
        cur.execute('INSERT INTO teachers (user_id, subject, phone) VALUES (%s,%s,%s)',
                    (user_id, data.get('subject', ''), data.get('phone', '')))
        cur.execute(TEACHER_SELECT + ' WHERE t.id=%s', (cur.lastrowid,))
        teacher = cur.fetchone()
    return jsonify(teacher), 201


@admin_bp.route('/teachers/<int:teacher_id>', methods=['PUT'])
@admin_required
def edit_teacher(teacher_id):
    data = request_data(request)
    with db_cursor(commit=True) as cur:
        cur.execute('SELECT user_id FROM teachers WHERE id=%s', (teacher_id,))
        row = cur.fetchone()
        if not row:
            raise ApiError(404, "Teacher not found")
        update_user(cur, row['user_id'], data)
        cur.execute('UPDATE teachers SET subject=COALESCE(%s,subject), phone=COALESCE(%s,phone) WHERE id=%s',
                    (data.get('subject'), data.get('phone'), teacher_id))
        cur.execute(TEACHER_SELECT + ' WHERE t.id=%s', (teacher_id,))
        teacher = cur.fetchone()
    return jsonify(teacher)


@admin_bp.route('/teachers/<int:teacher_id>', methods=['DELETE'])
@admin_required
def delete_teacher(teacher_id):
    with db_cursor(commit=True) as cur:
        cur.execute('SELECT user_id FROM teachers WHERE id=%s', (teacher_id,))
        row = cur.fetchone()
        if not row:
            raise ApiError(404, "Teacher not found")
        # teachers row goes with the user (ON DELETE CASCADE)
        cur.execute('DELETE FROM users WHERE id=%s', (row['user_id'],))
    return jsonify({'message': "Teacher deleted successfully"})


# --- STUDENTS ---
@admin_bp.route('/students')
@admin_required
def students():
    class_name = request.args.get('class_name')
    with db_cursor() as cur:
        if class_name:
            cur.execute(STUDENT_SELECT + ' WHERE s.class_name=%s ORDER BY s.roll_number', (class_name,))
        else:
            cur.execute(STUDENT_SELECT + ' ORDER BY s.class_name, s.roll_number')
        rows = cur.fetchall()
    return jsonify(rows)


@admin_bp.route('/students', methods=['POST'])
@admin_required
def add_student():
    data = request_data(request)
    name, email, password, roll_number, class_name = _required(
        data, 'name', 'email', 'password', 'roll_number', 'class_name')

    with db_cursor(commit=True) as cur:
        cur.execute('SELECT id FROM students WHERE roll_number=%s', (roll_number,))
        if cur.fetchone():
            raise ApiError(409, "A student with this roll number already exists")
        user_id = create_user(cur, name, email, password, 'student')
        cur.execute('INSERT INTO students (user_id, roll_number, class_name) VALUES (%s,%s,%s)',
                    (user_id, roll_number, class_name))
        cur.execute(STUDENT_SELECT + ' WHERE s.id=%s', (cur.lastrowid,))
        student = cur.fetchone()
    return jsonify(student), 201


@admin_bp.route('/students/<int:student_id>', methods=['PUT'])
@admin_required
def edit_student(student_id):
    data = request_data(request)
    with db_cursor(commit=True) as cur:
        cur.execute('SELECT user_id FROM students WHERE id=%s', (student_id,))
        row = cur.fetchone()
        if not row:
            raise ApiError(404, "Student not found")
        roll_number = data.get('roll_number')
        if roll_number:
            cur.execute('SELECT id FROM students WHERE roll_number=%s AND id<>%s', (roll_number, student_id))
            if cur.fetchone():
                raise ApiError(409, "A student with this roll number already exists")
        update_user(cur, row['user_id'], data)
        cur.execute('UPDATE students SET roll_number=COALESCE(%s,roll_number), '
                    'class_name=COALESCE(%s,class_name) WHERE id=%s',
                    (roll_number, data.get('class_name'), student_id))
        cur.execute(STUDENT_SELECT + ' WHERE s.id=%s', (student_id,))
        student = cur.fetchone()
    return jsonify(student)


@admin_bp.route('/students/<int:student_id>', methods=['DELETE'])
@admin_required
def delete_student(student_id):
    with db_cursor(commit=True) as cur:
        cur.execute('SELECT user_id FROM students WHERE id=%s', (student_id,))
        row = cur.fetchone()
        if not row:
            raise ApiError(404, "Student not found")
        cur.execute('DELETE FROM users WHERE id=%s', (row['user_id'],))
    return jsonify({'message': "Student deleted successfully"})
