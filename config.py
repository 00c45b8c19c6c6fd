# ============================================================================
# config.py
# ============================================================================
import os

BACKEND_URL = os.getenv("BACKEND_URL", "http://localhost:5000").rstrip("/")

FACULTY_BASE = "/faculty-api"
BATCH_BASE = "/batch-api"
SEM_BASE = "/sem-api/"  # change to "" if mounted at root
RESULT_BASE = "/result"

# Bearer token for the admin endpoints (optional)
ADMIN_TOKEN = os.getenv("ADMIN_TOKEN", "")

# Settings
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "15"))
LEVEL_DEFS_LIMIT = 100
DEFAULT_SEMESTERS = 8
DEFAULT_YEARS = 4
