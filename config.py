"""Configuration module for Flask application."""
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """Base configuration class."""

    # Flask
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    DEBUG = os.getenv('FLASK_DEBUG', '0') == '1'
    ENV = os.getenv('FLASK_ENV', 'development')

    # Session Configuration (Production-safe defaults)
    SESSION_COOKIE_SECURE = os.getenv('SESSION_COOKIE_SECURE', 'false').lower() == 'true'
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = os.getenv('SESSION_COOKIE_SAMESITE', 'Lax')
    PERMANENT_SESSION_LIFETIME = 86400  # 24 hours

    # Database - Priority: DATABASE_URL > DB_* > POSTGRES_*
    DATABASE_URL = os.getenv('DATABASE_URL')

    if not DATABASE_URL:
        DB_HOST = os.getenv('DB_HOST') or os.getenv('POSTGRES_HOST', 'localhost')
        DB_PORT = os.getenv('DB_PORT') or os.getenv('POSTGRES_PORT', '5432')
        DB_NAME = os.getenv('DB_NAME') or os.getenv('POSTGRES_DB', 'lumberdesk')
        DB_USER = os.getenv('DB_USER') or os.getenv('POSTGRES_USER', 'lumberdesk')
        DB_PASSWORD = os.getenv('DB_PASSWORD') or os.getenv('POSTGRES_PASSWORD', 'lumberdesk')

        DATABASE_URL = (
            f"postgresql://{DB_USER}:{DB_PASSWORD}"
            f"@{DB_HOST}:{DB_PORT}/{DB_NAME}"
        )

    # SQLAlchemy
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_ECHO = os.getenv('SQLALCHEMY_ECHO', 'false').lower() == 'true'
    CREATE_TABLES = os.getenv('CREATE_TABLES', 'false').lower() == 'true'

    # Company information (PDF header, WhatsApp messages)
    COMPANY_NAME = os.getenv('COMPANY_NAME', 'Madeiras Ouro Preto')
    COMPANY_CNPJ = os.getenv('COMPANY_CNPJ', '')
    COMPANY_ADDRESS = os.getenv('COMPANY_ADDRESS', '')
    COMPANY_EMAIL = os.getenv('COMPANY_EMAIL', '')
    COMPANY_WHATSAPP = os.getenv('COMPANY_WHATSAPP', '')
    COMPANY_PHONE_DISPLAY = os.getenv('COMPANY_PHONE_DISPLAY', '')

    # Rankings
    DASHBOARD_TOP_PRODUCTS = int(os.getenv('DASHBOARD_TOP_PRODUCTS', '5'))
    REPORTS_TOP_PRODUCTS = int(os.getenv('REPORTS_TOP_PRODUCTS', '10'))


class TestConfig(Config):
    """SQLite database, CSRF off, tables created on startup."""

    TESTING = True
    WTF_CSRF_ENABLED = False
    SQLALCHEMY_DATABASE_URI = os.getenv('TEST_DATABASE_URL', 'sqlite:///lumberdesk-test.db')
    SQLALCHEMY_ECHO = False
    CREATE_TABLES = True
    COMPANY_NAME = 'Madeiras Teste'
    COMPANY_WHATSAPP = '5547984350712'
