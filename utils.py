import io
from datetime import date, datetime

import pandas as pd

API_PREFIX = '/api'


def is_api_path(path, prefix=API_PREFIX):
    return path == prefix or path.startswith(prefix + '/')


def is_ajax(request):
    return request.headers.get('X-Requested-With', '').lower() == 'xmlhttprequest'


def parse_int(val, default=0):
    try:
        return int(val)
    except (ValueError, TypeError):
        return default


def parse_date(val):
    if isinstance(val, date):
        return val
    try:
        return datetime.strptime(str(val), '%Y-%m-%d').date()
    except (ValueError, TypeError):
        return None


def safe_date_to_str(val):
    if isinstance(val, (datetime, date)):
        return val.strftime('%Y-%m-%d')
    if isinstance(val, str):
        return val[:10]
    return ""


def export_dataframe(rows, fmt='csv', filename_prefix='attendance_report'):
    """Render attendance rows as a CSV or XLSX download buffer.

    Returns (buffer, mimetype, download_name), or (None, error) for an
    unsupported format.
    """
    if fmt not in ('csv', 'xlsx'):
        return None, f"Unsupported format: {fmt}"

    df = pd.DataFrame([{
        'Date': safe_date_to_str(r.get('date')),
        'Roll No': r.get('roll_number', ''),
        'Student': (r.get('student_name') or '').title(),
        'Class': (r.get('class_name') or '').upper(),
        'Status': (r.get('status') or '').capitalize(),
        'Remarks': r.get('remarks') or '',
    } for r in rows], columns=['Date', 'Roll No', 'Student', 'Class', 'Status', 'Remarks'])
    df = df.sort_values(by=['Date', 'Class', 'Roll No'])

    buf = io.BytesIO()
    download_name = f"{filename_prefix}.{fmt}"

    if fmt == 'csv':
        csv_buf = io.StringIO()
        df.to_csv(csv_buf, index=False)
        buf.write(csv_buf.getvalue().encode('utf-8'))
        mimetype = 'text/csv'
    else:
        with pd.ExcelWriter(buf, engine='openpyxl') as writer:
            df.to_excel(writer, index=False, sheet_name='Attendance')
        mimetype = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
    buf.seek(0)

    return buf, mimetype, download_name


def request_url(request):
    query = request.query_string.decode('utf-8', 'replace')
    return f"{request.path}?{query}" if query else request.path


def request_body(request):
    """Decoded JSON or form body, or an empty dict."""
    body = request.get_json(silent=True)
    if body is None:
        body = request.form.to_dict()
    return body


def request_data(request):
    body = request_body(request)
    return body if isinstance(body, dict) else {}


def attendance_summary(rows):
    counts = {status: 0 for status in ('present', 'absent', 'late')}
    for r in rows:
        if r.get('status') in counts:
            counts[r['status']] += 1
    total = sum(counts.values())
    attended = counts['present'] + counts['late']
    return {
        **counts,
        'total': total,
        'percentage': round(100.0 * attended / total, 1) if total else 0.0,
    }
