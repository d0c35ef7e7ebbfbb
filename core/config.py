import os

BASE_URL = os.environ.get("KANBAN_API_URL", "http://localhost:3222")
REQUEST_TIMEOUT = float(os.environ.get("KANBAN_TIMEOUT", "10"))

# report | rollback
FAILURE_POLICY = os.environ.get("KANBAN_FAILURE_POLICY", "report")
DISPATCH_WORKERS = int(os.environ.get("KANBAN_DISPATCH_WORKERS", "4"))

POLL_INTERVAL_MS = 50
WINDOW_GEOMETRY = os.environ.get("KANBAN_GEOMETRY", "1280x760")
TOPMOST = os.environ.get("KANBAN_TOPMOST", "0").strip().lower() in {"1", "true", "yes", "on"}
LOG_LEVEL = os.environ.get("KANBAN_LOG_LEVEL", "INFO")
