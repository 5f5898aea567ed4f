# schooladmin/api/settings.py
import os
import json

CONFIG_PATH = os.path.join(os.path.dirname(__file__), "config", "server.json")

with open(CONFIG_PATH) as f:
    config_data = json.load(f)

INSECURE_SECRET = "changeme-local-dev"


def _flag(name, default=False):
    raw = os.getenv(name)
    if raw is None:
        return bool(config_data.get(name, default))
    return raw.strip().lower() in ("1", "true", "yes", "on")


ENV = os.getenv("ENV", config_data.get("ENV", "dev"))
DEBUG = _flag("DEBUG", ENV == "dev")

SECRET_KEY = os.getenv("SECRET_KEY", config_data.get("SECRET_KEY", INSECURE_SECRET))
ALGORITHM = os.getenv("ALGORITHM", config_data.get("ALGORITHM", "HS256"))

REDIS_URL = os.getenv("REDIS_URL", config_data.get("REDIS_URL", ""))
STORE_PREFIX = os.getenv("STORE_PREFIX", config_data.get("STORE_PREFIX", "schooladmin"))

COOKIE_NAME = os.getenv("COOKIE_NAME", config_data.get("COOKIE_NAME", "token"))
# one year, the only expiry a session has
SESSION_MAX_AGE = int(os.getenv("SESSION_MAX_AGE", config_data.get("SESSION_MAX_AGE", 60 * 60 * 24 * 365)))
COOKIE_SECURE = _flag("COOKIE_SECURE", False)
COOKIE_SAMESITE = os.getenv("COOKIE_SAMESITE", config_data.get("COOKIE_SAMESITE", "Lax")) or None

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", config_data.get("CORS_ORIGINS", "http://localhost:3000")).split(",") if o.strip()]
PASSWORD_SCHEMES = [s.strip() for s in os.getenv("PASSWORD_SCHEMES", config_data.get("PASSWORD_SCHEMES", "pbkdf2_sha256")).split(",") if s.strip()]

if ENV != "dev" and SECRET_KEY == INSECURE_SECRET:
    raise RuntimeError("insecure default SECRET_KEY in non-dev; configure SECRET_KEY")
