import os
from dotenv import load_dotenv

load_dotenv()

class Settings:
    API_KEY: str = os.getenv("API_KEY", "")
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "*")

    # Backend API that answers cashier / account-status / verification requests
    CASHIER_API_URL: str = os.getenv("CASHIER_API_URL", "")
    TRANSPORT_TIMEOUT_SEC: float = float(os.getenv("TRANSPORT_TIMEOUT_SEC", "10.0"))

    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")

    # Site identity: same-origin height messages come from the host page itself
    SITE_DOMAIN: str = os.getenv("SITE_DOMAIN", "binary.com")
    SITE_BASE_URL: str = os.getenv("SITE_BASE_URL", "https://www.binary.com/en")
    SET_CURRENCY_PATH: str = os.getenv("SET_CURRENCY_PATH", "user/set-currency")

    # Comma-separated path markers that select an alternate payment provider
    PROVIDER_MARKERS: str = os.getenv("PROVIDER_MARKERS", "epg")

    DEFAULT_IFRAME_HEIGHT: int = int(os.getenv("DEFAULT_IFRAME_HEIGHT", "700"))
    TOKEN_LENGTH: int = int(os.getenv("TOKEN_LENGTH", "8"))
    # Upper bound on cashier requests per page activation (verification/consent re-entries included)
    MAX_CASHIER_ATTEMPTS: int = int(os.getenv("MAX_CASHIER_ATTEMPTS", "4"))

    # Currency collaborator knobs
    FIAT_MIN_WITHDRAWAL: float = float(os.getenv("FIAT_MIN_WITHDRAWAL", "1"))
    CRYPTO_MIN_WITHDRAWAL: float = float(os.getenv("CRYPTO_MIN_WITHDRAWAL", "0.002"))
    CRYPTO_CURRENCIES: str = os.getenv("CRYPTO_CURRENCIES", "BTC,BCH,ETH,ETC,LTC,UST,USB,IDK,DAI,EUSDT,TUSDT,USDC")

    # Outcome snapshot (debug / admin retrieval)
    STORE_LAST_OUTCOME: bool = os.getenv("STORE_LAST_OUTCOME", "true").lower() == "true"
    OUTCOME_TTL_SEC: int = int(os.getenv("OUTCOME_TTL_SEC", "3600"))
    METRICS_ENABLED: bool = os.getenv("METRICS_ENABLED", "true").lower() == "true"

    # Security & Privacy
    ENABLE_PII_REDACTION: bool = os.getenv("ENABLE_PII_REDACTION", "true").lower() == "true"
    ADMIN_RBAC_ENABLED: bool = os.getenv("ADMIN_RBAC_ENABLED", "true").lower() == "true"
    ADMIN_API_KEY: str = os.getenv("ADMIN_API_KEY", "")

    def provider_markers(self) -> list:
        return [x.strip() for x in self.PROVIDER_MARKERS.split(",") if x.strip()]

    def crypto_currencies(self) -> set:
        return {x.strip().upper() for x in self.CRYPTO_CURRENCIES.split(",") if x.strip()}

settings = Settings()
