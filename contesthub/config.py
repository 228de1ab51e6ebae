import os
from typing import List, Optional
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Settings:
    """Runtime configuration read from the environment"""

    REQUIRED = ("MONGODB_URL", "FIREBASE_PROJECT_ID", "STRIPE_SECRET_KEY", "CLIENT_URL")

    def __init__(
        self,
        app_name: Optional[str] = None,
        app_version: Optional[str] = None,
        debug: Optional[bool] = None,
        mongodb_url: Optional[str] = None,
        database_name: Optional[str] = None,
        firebase_project_id: Optional[str] = None,
        stripe_secret_key: Optional[str] = None,
        payment_gateway: Optional[str] = None,
        payment_currency: Optional[str] = None,
        client_url: Optional[str] = None,
    ):
        self.app_name = app_name or os.getenv("APP_NAME", "ContestHub")
        self.app_version = app_version or os.getenv("APP_VERSION", "1.0.0")
        if debug is None:
            debug = os.getenv("DEBUG", "False").lower() == "true"
        self.debug = debug
        self.mongodb_url = mongodb_url or os.getenv("MONGODB_URL")
        self.database_name = database_name or os.getenv("DATABASE_NAME", "contesthub")
        self.firebase_project_id = firebase_project_id or os.getenv("FIREBASE_PROJECT_ID")
        self.stripe_secret_key = stripe_secret_key or os.getenv("STRIPE_SECRET_KEY")
        self.payment_gateway = payment_gateway or os.getenv("PAYMENT_GATEWAY", "stripe")
        self.payment_currency = (payment_currency or os.getenv("PAYMENT_CURRENCY", "usd")).lower()
        self.client_url = (client_url or os.getenv("CLIENT_URL", "")).rstrip("/")

    def missing(self) -> List[str]:
        """Names of required settings that are not set"""
        values = {
            "MONGODB_URL": self.mongodb_url,
            "FIREBASE_PROJECT_ID": self.firebase_project_id,
            "STRIPE_SECRET_KEY": self.stripe_secret_key,
            "CLIENT_URL": self.client_url,
        }
        return [name for name in self.REQUIRED if not values[name]]

    def validate(self) -> None:
        """Fail startup when required configuration is absent"""
        missing = self.missing()
        if missing:
            raise RuntimeError(f"Missing required configuration: {', '.join(missing)}")

    @property
    def cors_origins(self) -> List[str]:
        if self.debug:
            return ["*"]
        origins = ["http://localhost:5173", "http://localhost:3000"]
        if self.client_url:
            origins.insert(0, self.client_url)
        return origins


def get_settings() -> Settings:
    return Settings()
