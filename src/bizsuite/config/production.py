import os

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "bizsuite"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "bizsuite"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

LATE_THRESHOLD = os.getenv("LATE_THRESHOLD", "09:00")
STANDARD_WORKDAY_MINUTES = int(os.getenv("STANDARD_WORKDAY_MINUTES", "480"))
PASSING_SCORE = float(os.getenv("PASSING_SCORE", "70"))
CERTIFICATE_PREFIX = os.getenv("CERTIFICATE_PREFIX", "CERT")
INVOICE_DUE_DAYS = int(os.getenv("INVOICE_DUE_DAYS", "30"))
SUPPORT_AGENT_ROLE = os.getenv("SUPPORT_AGENT_ROLE", "support_agent")
