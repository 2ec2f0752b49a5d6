# edulink/core/config.py
import os
from collections.abc import Mapping

from dotenv import load_dotenv
from sqlalchemy.engine import make_url


def str_to_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def parse_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [v.strip() for v in value.split(",") if v.strip()]


def merge_unique(items: list[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for v in items:
        if v in seen:
            continue
        seen.add(v)
        out.append(v)
    return out


class Settings:
    # Startup refuses to run without these.
    REQUIRED_FIELDS = ("STORE_URL", "STORE_KEY", "PAYSTACK_SECRET_KEY")

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        if environ is None:
            # Only load .env for local/dev. In prod, env vars come from the service config.
            if os.getenv("ENV", "dev").strip().lower() != "prod":
                load_dotenv()
            environ = os.environ
        env = environ.get

        self.ENV = env("ENV", "dev").strip().lower()  # dev | prod
        self.LOG_LEVEL = env("LOG_LEVEL", "INFO").strip().upper() or "INFO"

        # ----------------------------
        # Store (hosted Postgres)
        # ----------------------------
        self.STORE_URL = env("STORE_URL", "").strip()
        self.STORE_KEY = env("STORE_KEY", "")

        # ----------------------------
        # Paystack
        # ----------------------------
        # The secret key both signs webhooks and authenticates API calls.
        self.PAYSTACK_SECRET_KEY = env("PAYSTACK_SECRET_KEY", "")
        self.PAYSTACK_API_BASE_URL = env("PAYSTACK_API_BASE_URL", "https://api.paystack.co").strip().rstrip("/")
        self.PAYSTACK_TIMEOUT_SECONDS = float(env("PAYSTACK_TIMEOUT_SECONDS", "10"))
        self.PLATFORM_FEE_PERCENT = int(env("PLATFORM_FEE_PERCENT", "15"))
        self.DEFAULT_CURRENCY = env("DEFAULT_CURRENCY", "NGN").strip().upper() or "NGN"
        # A pending claim older than this is treated as abandoned by a crashed worker.
        self.PAYSTACK_CLAIM_LEASE_SECONDS = int(env("PAYSTACK_CLAIM_LEASE_SECONDS", "300"))

        # ----------------------------
        # Auth (tokens issued by the hosted auth service)
        # ----------------------------
        self.AUTH_JWT_SECRET = env("AUTH_JWT_SECRET", "")
        self.AUTH_JWT_ALGORITHM = env("AUTH_JWT_ALGORITHM", "HS256")
        self.AUTH_JWT_AUDIENCE = env("AUTH_JWT_AUDIENCE", "authenticated").strip()

        # ----------------------------
        # CORS / URLs
        # ----------------------------
        dev_defaults = [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ]
        cors_from_env = parse_csv(env("CORS_ORIGINS"))
        if self.ENV == "prod":
            self.CORS_ORIGINS = merge_unique(cors_from_env)
            self.FRONTEND_BASE_URL = env("FRONTEND_BASE_URL", "").strip().rstrip("/")
        else:
            self.CORS_ORIGINS = merge_unique(cors_from_env + dev_defaults)
            self.FRONTEND_BASE_URL = env("FRONTEND_BASE_URL", "http://localhost:3000").strip().rstrip("/")

        # ----------------------------
        # Rate limiting
        # ----------------------------
        self.ENABLE_RATE_LIMITING = str_to_bool(env("ENABLE_RATE_LIMITING", "false"))
        self.VERIFY_PAYMENT_RATE_LIMIT = env("VERIFY_PAYMENT_RATE_LIMIT", "10/minute")

        self._validate_prod()

    def _validate_prod(self) -> None:
        if self.ENV != "prod":
            return

        missing: list[str] = []
        if not self.AUTH_JWT_SECRET:
            missing.append("AUTH_JWT_SECRET")
        if not self.FRONTEND_BASE_URL:
            missing.append("FRONTEND_BASE_URL")
        if not self.CORS_ORIGINS:
            missing.append("CORS_ORIGINS")

        cors_joined = ",".join(self.CORS_ORIGINS)
        if "localhost" in cors_joined or "127.0.0.1" in cors_joined:
            raise RuntimeError("CORS_ORIGINS contains localhost/dev origins in prod")
        if self.FRONTEND_BASE_URL and not self.FRONTEND_BASE_URL.startswith("https://"):
            raise RuntimeError("FRONTEND_BASE_URL should be https://... in prod")

        if missing:
            raise RuntimeError(f"Missing required prod env vars: {', '.join(missing)}")

    @property
    def is_prod(self) -> bool:
        return self.ENV == "prod"

    def missing_required(self) -> list[str]:
        return [name for name in self.REQUIRED_FIELDS if not str(getattr(self, name, "") or "").strip()]

    @property
    def database_url(self) -> str:
        if not self.STORE_URL:
            raise RuntimeError("STORE_URL must be set")
        url = make_url(self.STORE_URL)
        # STORE_KEY is the store credential; file/in-memory URLs have nowhere to put it.
        if not url.host or not self.STORE_KEY:
            return self.STORE_URL
        return url.set(password=self.STORE_KEY).render_as_string(hide_password=False)


settings = Settings()


def require_settings() -> None:
    missing = settings.missing_required()
    if missing:
        raise RuntimeError(f"Missing required configuration: {', '.join(missing)}")
