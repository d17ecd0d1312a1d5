"""Configuration module for Flask application."""
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Placeholder only; admin bearer tokens are refused while it is in use
DEV_SECRET_KEY = 'dev-secret-key-change-in-production'


class Config:
    """Base configuration class."""

    # Flask
    SECRET_KEY = os.getenv('SECRET_KEY', DEV_SECRET_KEY)
    DEBUG = os.getenv('FLASK_DEBUG', '0') == '1'
    ENV = os.getenv('FLASK_ENV', 'development')

    # Preferred URL scheme (for url_for with _external=True)
    PREFERRED_URL_SCHEME = os.getenv('PREFERRED_URL_SCHEME', 'http')

    # Admin authentication (shared secret + signed bearer tokens)
    ADMIN_PASSWORD = os.getenv('ADMIN_PASSWORD') or os.getenv('LICENSE_ADMIN_PASSWORD') or ''
    ADMIN_TOKEN_TTL = int(os.getenv('ADMIN_TOKEN_TTL', '28800'))  # 8 hours

    # Database - Support multiple environment variable naming conventions
    # Priority: DATABASE_URL > DB_* > POSTGRES_*
    DATABASE_URL = os.getenv('DATABASE_URL')

    if not DATABASE_URL:
        DB_HOST = os.getenv('DB_HOST') or os.getenv('POSTGRES_HOST', 'localhost')
        DB_PORT = os.getenv('DB_PORT') or os.getenv('POSTGRES_PORT', '5432')
        DB_NAME = os.getenv('DB_NAME') or os.getenv('POSTGRES_DB', 'license_console')
        DB_USER = os.getenv('DB_USER') or os.getenv('POSTGRES_USER', 'license_console')
        DB_PASSWORD = os.getenv('DB_PASSWORD') or os.getenv('POSTGRES_PASSWORD', 'license_console')

        DATABASE_URL = (
            f"postgresql+psycopg://{DB_USER}:{DB_PASSWORD}"
            f"@{DB_HOST}:{DB_PORT}/{DB_NAME}"
        )

    # SQLAlchemy
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_ECHO = os.getenv('SQLALCHEMY_ECHO', 'false').lower() == 'true'

    # Email configuration (invoice dispatch)
    MAIL_SERVER = os.getenv('SMTP_HOST', 'localhost')
    MAIL_PORT = int(os.getenv('SMTP_PORT', 465))
    MAIL_USE_SSL = os.getenv('SMTP_SECURE', 'true' if MAIL_PORT == 465 else 'false').lower() == 'true'
    MAIL_USE_TLS = not MAIL_USE_SSL and MAIL_PORT == 587
    MAIL_USERNAME = os.getenv('SMTP_USER') or ''
    MAIL_PASSWORD = os.getenv('SMTP_PASS') or os.getenv('SMTP_PASSWORD') or ''
    MAIL_DEFAULT_SENDER = (
        os.getenv('SMTP_FROM')
        or MAIL_USERNAME
        or 'no-reply@localhost'
    )
    MAIL_SENDER_NAME = os.getenv('SMTP_SENDER_NAME', 'SportFlow')
    MAIL_SUPPRESS_SEND = False

    # Booking app stats pull
    STATS_FETCH_TIMEOUT = int(os.getenv('STATS_FETCH_TIMEOUT', '10'))  # seconds


class TestingConfig(Config):
    """Configuration used by the test suite."""

    TESTING = True
    DEBUG = False
    ENV = 'testing'
    SECRET_KEY = 'test-secret-key'
    ADMIN_PASSWORD = 'test-admin-password'
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ECHO = False
    MAIL_SERVER = 'localhost'
    MAIL_USERNAME = 'faktura@example.com'
    MAIL_PASSWORD = ''
    MAIL_DEFAULT_SENDER = 'faktura@example.com'
    MAIL_SUPPRESS_SEND = True
