import logging
from datetime import date

import mysql.connector
from flask import Blueprint, g, jsonify, request, send_file

from db import db_cursor
from errors import ApiError
from models import ATTENDANCE_SELECT, ATTENDANCE_STATUSES
from routes.auth import admin_required, staff_required
from utils import export_dataframe, parse_date, parse_int, request_data, safe_date_to_str

logger = logging.getLogger(__name__)

attendance_bp = Blueprint('attendance', __name__)

EXPORT_FORMATS = ('csv', 'xlsx')


def _serialize(rows):
    for r in rows:
        r['date'] = safe_date_to_str(r['date'])
    return rows


def _validate_records(records):
    if not isinstance(records, list) or not records:
        raise ApiError(400, "records must be a non-empty list")
    cleaned = []
    for i, r in enumerate(records):
        student_id = parse_int(r.get('student_id') if isinstance(r, dict) else None, None)
        status = r.get('status') if isinstance(r, dict) else None
        if student_id is None or status not in ATTENDANCE_STATUSES:
            raise ApiError(400, f"Invalid attendance record at position {i}")
        cleaned.append((student_id, status, (r.get('remarks') or '').strip()))
    return cleaned


def _filters(args):
    """WHERE clause and params for the list/report query string."""
    clauses, params = [], []
    day = args.get('date')
    if day:
        parsed = parse_date(day)
        if not parsed:
            raise ApiError(400, "date must be YYYY-MM-DD")
        clauses.append('a.date=%s')
        params.append(parsed)
    for key, op in (('from', '>='), ('to', '<=')):
        if args.get(key):
            parsed = parse_date(args[key])
            if not parsed:
                raise ApiError(400, f"{key} must be YYYY-MM-DD")
            clauses.append(f'a.date{op}%s')
            params.append(parsed)
    if args.get('class_name'):
        clauses.append('s.class_name=%s')
        params.append(args['class_name'])
    if args.get('student_id'):
        clauses.append('a.student_id=%s')
        params.append(parse_int(args['student_id']))
    where = (' WHERE ' + ' AND '.join(clauses)) if clauses else ''
    return where, params


# --- Take attendance ---
@attendance_bp.route('', methods=['POST'])
@staff_required
def take_attendance():
    data = request_data(request)
    day = parse_date(data['date']) if data.get('date') else date.today()
    if not day:
        raise ApiError(400, "date must be YYYY-MM-DD")
    records = _validate_records(data.get('records'))

    try:
        with db_cursor(commit=True) as cur:
            teacher_id = None
            if g.user['role'] == 'teacher':
                cur.execute('SELECT id FROM teachers WHERE user_id=%s', (g.user['id'],))
                row = cur.fetchone()
                teacher_id = row['id'] if row else None
            for student_id, status, remarks in records:
                cur.execute(
                    'INSERT INTO attendance (student_id, teacher_id, date, status, remarks) '
                    'VALUES (%s,%s,%s,%s,%s) '
                    'ON DUPLICATE KEY UPDATE teacher_id=VALUES(teacher_id), '
                    'status=VALUES(status), remarks=VALUES(remarks)',
                    (student_id, teacher_id, day, status, remarks))
    except mysql.connector.IntegrityError as e:
        logger.warning("Rejected attendance for %s: %s", day, e)
        raise ApiError(400, "Unknown student in attendance records")

    logger.info("%s recorded attendance for %d students on %s", g.user['email'], len(records), day)
    return jsonify({
        'message': f"Attendance saved for {len(records)} students",
        'date': day.isoformat(),
        'count': len(records),
    }), 201


# --- List ---
@attendance_bp.route('')
@staff_required
def list_attendance():
    where, params = _filters(request.args)
    with db_cursor() as cur:
        cur.execute(ATTENDANCE_SELECT + where + ' ORDER BY a.date DESC, s.class_name, s.roll_number',
                    tuple(params))
        rows = cur.fetchall()
    return jsonify(_serialize(rows))


@attendance_bp.route('/<int:record_id>', methods=['PUT'])
@staff_required
def edit_attendance(record_id):
    data = request_data(request)
    status = data.get('status')
    if status not in ATTENDANCE_STATUSES:
        raise ApiError(400, f"status must be one of {', '.join(ATTENDANCE_STATUSES)}")

    with db_cursor(commit=True) as cur:
        cur.execute('SELECT id FROM attendance WHERE id=%s', (record_id,))
        if not cur.fetchone():
            raise ApiError(404, "Attendance record not found")
        cur.execute('UPDATE attendance SET status=%s, remarks=COALESCE(%s,remarks) WHERE id=%s',
                    (status, data.get('remarks'), record_id))
        cur.execute(ATTENDANCE_SELECT + ' WHERE a.id=%s', (record_id,))
        row = cur.fetchone()
    return jsonify(_serialize([row])[0])


@attendance_bp.route('/<int:record_id>', methods=['DELETE'])
@admin_required
def delete_attendance(record_id):
    with db_cursor(commit=True) as cur:
        cur.execute('SELECT id FROM attendance WHERE id=%s', (record_id,))
        if not cur.fetchone():
            raise ApiError(404, "Attendance record not found")
        cur.execute('DELETE FROM attendance WHERE id=%s', (record_id,))
    return jsonify({'message': "Attendance record deleted successfully"})


# --- Export ---
@attendance_bp.route('/report')
@staff_required
def report():
    fmt = request.args.get('format', 'csv')
    if fmt not in EXPORT_FORMATS:
        raise ApiError(400, f"Unsupported format: {fmt}")
    where, params = _filters(request.args)
    with db_cursor() as cur:
        cur.execute(ATTENDANCE_SELECT + where, tuple(params))
        rows = cur.fetchall()

    if not rows:
        raise ApiError(404, "No attendance records found for export")

    buf, mimetype, fname = export_dataframe(rows, fmt)
    return send_file(buf, mimetype=mimetype, as_attachment=True, download_name=fname)
