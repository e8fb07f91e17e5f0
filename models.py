import logging

from werkzeug.security import generate_password_hash

from db import connect
from errors import ApiError

logger = logging.getLogger(__name__)

ROLES = ('admin', 'teacher', 'student')
ATTENDANCE_STATUSES = ('present', 'absent', 'late')

CREATE_TABLES_SQL = [
    """CREATE TABLE IF NOT EXISTS users (
        id INT AUTO_INCREMENT PRIMARY KEY,
        name VARCHAR(255) NOT NULL,
        email VARCHAR(255) NOT NULL UNIQUE,
        password VARCHAR(255) NOT NULL,
        role ENUM('admin','teacher','student') NOT NULL,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    ) ENGINE=InnoDB;""",
    """CREATE TABLE IF NOT EXISTS teachers (
        id INT AUTO_INCREMENT PRIMARY KEY,
        user_id INT NOT NULL UNIQUE,
        subject VARCHAR(255) DEFAULT '',
        phone VARCHAR(50) DEFAULT '',
        FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
    ) ENGINE=InnoDB;""",
    """CREATE TABLE IF NOT EXISTS students (
        id INT AUTO_INCREMENT PRIMARY KEY,
        user_id INT NOT NULL UNIQUE,
        roll_number VARCHAR(50) NOT NULL UNIQUE,
        class_name VARCHAR(100) NOT NULL,
        FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
    ) ENGINE=InnoDB;""",
    """CREATE TABLE IF NOT EXISTS attendance (
        id INT AUTO_INCREMENT PRIMARY KEY,
        student_id INT NOT NULL,
        teacher_id INT,
        date DATE NOT NULL,
        status ENUM('present','absent','late') NOT NULL,
        remarks VARCHAR(255) DEFAULT '',
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        UNIQUE KEY uniq_student_date (student_id, date),
        FOREIGN KEY (student_id) REFERENCES students(id) ON DELETE CASCADE,
        FOREIGN KEY (teacher_id) REFERENCES teachers(id) ON DELETE SET NULL
    ) ENGINE=InnoDB;"""
]


def init_db(config):
    """Create missing tables and seed the admin account."""
    conn = connect(config.database_uri)
    try:
        cur = conn.cursor()
        for sql in CREATE_TABLES_SQL:
            cur.execute(sql)
        cur.execute('SELECT id FROM users WHERE email=%s', (config.admin_email,))
        if not cur.fetchone():
            cur.execute('INSERT INTO users (name,email,password,role) VALUES (%s,%s,%s,%s)',
                        ('Administrator', config.admin_email,
                         generate_password_hash(config.admin_password), 'admin'))
            logger.info("Seeded admin account %s", config.admin_email)
        conn.commit()
        cur.close()
    finally:
        conn.close()


TEACHER_SELECT = '''
    SELECT t.id, t.user_id, u.name, u.email, t.subject, t.phone
    FROM teachers t JOIN users u ON t.user_id=u.id'''

STUDENT_SELECT = '''
    SELECT s.id, s.user_id, u.name, u.email, s.roll_number, s.class_name
    FROM students s JOIN users u ON s.user_id=u.id'''

ATTENDANCE_SELECT = '''
    SELECT a.id, a.student_id, a.teacher_id, a.date, a.status, a.remarks,
           s.roll_number, s.class_name, u.name AS student_name
    FROM attendance a
    JOIN students s ON a.student_id=s.id
    JOIN users u ON s.user_id=u.id'''


def create_user(cur, name, email, password, role):
    if role not in ROLES:
        raise ApiError(400, f"Unknown role: {role}")
    cur.execute('SELECT id FROM users WHERE email=%s', (email,))
    if cur.fetchone():
        raise ApiError(409, "A user with this email already exists")
    cur.execute('INSERT INTO users (name,email,password,role) VALUES (%s,%s,%s,%s)',
                (name, email, generate_password_hash(password), role))
    return cur.lastrowid


def update_user(cur, user_id, data):
    email = (data.get('email') or '').strip() or None
    if email:
        cur.execute('SELECT id FROM users WHERE email=%s AND id<>%s', (email, user_id))
        if cur.fetchone():
            raise ApiError(409, "A user with this email already exists")
    cur.execute('UPDATE users SET name=COALESCE(%s,name), email=COALESCE(%s,email) WHERE id=%s',
                ((data.get('name') or '').strip() or None, email, user_id))
    if data.get('password'):
        cur.execute('UPDATE users SET password=%s WHERE id=%s',
                    (generate_password_hash(data['password']), user_id))
