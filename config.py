import os
from dataclasses import dataclass
from dotenv import load_dotenv

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

SERVER_SELECTION_TIMEOUT_MS = 5000
DEFAULT_DATABASE_URI = 'mysql://root:@127.0.0.1:3306/attendancedb'


@dataclass(frozen=True)
class Config:
    env: str = 'development'
    database_uri: str = DEFAULT_DATABASE_URI
    port: int = 5000
    secret_key: str = 'dev'
    admin_email: str = 'admin@school.local'
    admin_password: str = 'adminpass'
    static_root: str = os.path.join(BASE_DIR, 'public')
    token_max_age: int = 86400

    @property
    def is_production(self):
        return self.env == 'production'


def load_config():
    """Read the environment (and .env) once into a read-only Config."""
    load_dotenv()
    env = os.environ.get('APP_ENV') or os.environ.get('NODE_ENV') or 'development'
    return Config(
        env=env,
        database_uri=os.environ.get('DATABASE_URI', DEFAULT_DATABASE_URI),
        port=int(os.environ.get('PORT', 5000)),
        secret_key=os.environ.get('SECRET_KEY') or os.urandom(24).hex(),
        admin_email=os.environ.get('ADMIN_EMAIL', 'admin@school.local'),
        admin_password=os.environ.get('ADMIN_PASSWORD', 'adminpass'),
        static_root=os.environ.get('STATIC_ROOT', os.path.join(BASE_DIR, 'public')),
        token_max_age=int(os.environ.get('TOKEN_MAX_AGE', 86400)),
    )
