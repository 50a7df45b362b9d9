import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./sessions.db")
    API_PREFIX = data.get("API_PREFIX", "/api")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    JWT_SECRET = data.get("JWT_SECRET", "dev-secret-key-change-in-production")
    JWT_ALGORITHM = data.get("JWT_ALGORITHM", "HS256")
    # Provider client id may come from the deployment environment instead of env.yaml
    WORKOS_CLIENT_ID = data.get("WORKOS_CLIENT_ID", os.environ.get("WORKOS_CLIENT_ID", ""))
    WORKOS_TOKEN_URL = data.get(
        "WORKOS_TOKEN_URL", "https://api.workos.com/user_management/authenticate"
    )
    WORKOS_TIMEOUT_SECONDS = float(data.get("WORKOS_TIMEOUT_SECONDS", 10.0))
    DEFAULT_EXPIRES_IN = int(data.get("DEFAULT_EXPIRES_IN", 300))
