import os
from dotenv import load_dotenv
load_dotenv()

class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///orgsurvey.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    SENDGRID_API_KEY = os.getenv("SENDGRID_API_KEY")
    MAIL_FROM = os.getenv("MAIL_FROM", "noreply@example.com")
    MAIL_FROM_NAME = os.getenv("MAIL_FROM_NAME", "ソシキサーベイ事務局")
    APP_BASE_URL = os.getenv("APP_BASE_URL", "http://localhost:5000")
    STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "local")
    LOCAL_STORAGE_DIR = os.getenv("LOCAL_STORAGE_DIR", "./storage")
    S3_ENDPOINT = os.getenv("S3_ENDPOINT")
    S3_REGION = os.getenv("S3_REGION")
    S3_BUCKET = os.getenv("S3_BUCKET")
    S3_ACCESS_KEY = os.getenv("S3_ACCESS_KEY")
    S3_SECRET_KEY = os.getenv("S3_SECRET_KEY")

    # survey rules
    DISPLAY_LIMIT_PER_TYPE = int(os.getenv("DISPLAY_LIMIT_PER_TYPE", "5"))
    DEPARTMENT_CODE_MIN = int(os.getenv("DEPARTMENT_CODE_MIN", "3"))
    MANAGER_JOB_CODES = [c.strip() for c in os.getenv("MANAGER_JOB_CODES", "1,2,3").split(",") if c.strip()]
    NOTIFICATION_KEEP_PER_USER = int(os.getenv("NOTIFICATION_KEEP_PER_USER", "50"))
    DEFAULT_EMPLOYEE_PASSWORD = os.getenv("DEFAULT_EMPLOYEE_PASSWORD", "changeme-1234")

    # system ops
    RESTART_COMMAND = os.getenv("RESTART_COMMAND", "pm2 restart orgsurvey")
    PG_DUMP_BIN = os.getenv("PG_DUMP_BIN", "pg_dump")
    PSQL_BIN = os.getenv("PSQL_BIN", "psql")
    BACKUP_TIMEOUT_SEC = int(os.getenv("BACKUP_TIMEOUT_SEC", "300"))


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    WTF_CSRF_ENABLED = False
    REDIS_URL = None
    SENDGRID_API_KEY = None
    RESTART_COMMAND = None
