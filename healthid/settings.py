import os
from dotenv import load_dotenv

load_dotenv()

class Settings:
    # Remote EHR gateway
    API_URL: str = os.getenv("API_URL", "").rstrip("/")
    API_KEY: str = os.getenv("API_KEY", "")
    HPRID_AUTH: str = os.getenv("HPRID_AUTH", "")
    REQUEST_TIMEOUT_SEC: float = float(os.getenv("REQUEST_TIMEOUT_SEC", "30.0"))

    # Public key (PEM key, PEM certificate or bare base64 body) used for aadhaar/otp/mobile encryption
    ABHA_CERTIFICATE_PEM: str = os.getenv("ABHA_CERTIFICATE_PEM", "")

    # Inbound API surface
    SERVICE_API_KEY: str = os.getenv("SERVICE_API_KEY", "")
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "*")
    ADMIN_RBAC_ENABLED: bool = os.getenv("ADMIN_RBAC_ENABLED", "true").lower() == "true"
    ADMIN_API_KEY: str = os.getenv("ADMIN_API_KEY", "")

    # Observability
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    METRICS_ENABLED: bool = os.getenv("METRICS_ENABLED", "false").lower() == "true"
    ENABLE_PII_REDACTION: bool = os.getenv("ENABLE_PII_REDACTION", "true").lower() == "true"

settings = Settings()
