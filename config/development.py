import os

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "hrms_db"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, the CLI applies schema.sql before running (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

BULK_PAYROLL_WORKERS = int(os.getenv("BULK_PAYROLL_WORKERS", "4"))
# 'resplit' or 'reject', see LeaveLedger.approve
LEAVE_OVERDRAFT_POLICY = os.getenv("LEAVE_OVERDRAFT_POLICY", "resplit")
