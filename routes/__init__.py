from routes.auth import auth_bp
from routes.teacher import teacher_bp
from routes.admin import admin_bp
from routes.student import student_bp
from routes.attendance import attendance_bp

# Mount order is matching priority: teacher routes go before admin routes.
API_BLUEPRINTS = (
    ('/api/auth', auth_bp),
    ('/api/teacher', teacher_bp),
    ('/api/admin', admin_bp),
    ('/api/student', student_bp),
    ('/api/attendance', attendance_bp),
)
