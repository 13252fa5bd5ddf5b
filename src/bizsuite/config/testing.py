import os

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "bizsuite_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

LATE_THRESHOLD = "09:00"
STANDARD_WORKDAY_MINUTES = 480
PASSING_SCORE = 70
CERTIFICATE_PREFIX = "CERT"
INVOICE_DUE_DAYS = 30
SUPPORT_AGENT_ROLE = "support_agent"
