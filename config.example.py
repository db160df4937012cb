# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real session cookies. Use .env (local, gitignored).

This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "TASKSYNC_APP_NAME": "App display name (default: tasksync).",
    "TASKSYNC_LOG_LEVEL": "Console logging level (default: INFO).",
    # Task API
    "TASKSYNC_BASE_URL": "Server origin serving /api/user/tasks (default: http://localhost:5000).",
    "TASKSYNC_SESSION_COOKIE": "Session cookie sent with every request, e.g. 'connect.sid=...'.",
    "TASKSYNC_REQUEST_TIMEOUT_SECONDS": "Client-side request timeout; 0 disables it (default: 30).",
    # Paths (gitignored)
    "TASKSYNC_DATA_DIR": "Local data directory (default: .local/tasksync).",
    "TASKSYNC_STORE_DB_PATH": "SQLite file for the local task cache and sync gate "
    "(default: <data_dir>/tasksync.sqlite3).",
}
