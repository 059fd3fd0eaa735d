import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "timeclock_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

CRON_SECRET = "test-cron-secret"
PUBLIC_BASE_URL = "http://testserver"
STORAGE_DIR = os.getenv("STORAGE_DIR", "/tmp/timeclock-test-storage")

SMTP_HOST = ""
SMTP_PORT = 587
SMTP_USER = ""
SMTP_PASSWORD = ""
SMTP_USE_TLS = False
MAIL_FROM = "CICO Reports <reports@test.local>"

AZURE_FACE_ENDPOINT = ""
AZURE_FACE_KEY = ""
FACE_MATCH_THRESHOLD = 0.55
