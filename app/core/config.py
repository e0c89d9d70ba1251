from decimal import Decimal
from typing import Dict

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "Cine Booking API"
    API_V1_STR: str = "/api/v1"
    SECRET_KEY: str = "changeme"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 8

    # Database
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "12345"
    POSTGRES_DB: str = "cine_booking"
    POSTGRES_PORT: int = 5432
    DATABASE_URL: str = ""

    # Holds & cancellation policy
    HOLD_TTL_MINUTES: int = 15
    HOLD_SWEEP_SECONDS: int = 60  # 0 disables the background sweep
    CANCELLATION_CUTOFF_HOURS: int = 24

    # Payments
    AMOUNT_TOLERANCE: Decimal = Decimal("0.01")
    MAX_INSTALLMENTS: int = 12
    TICKET_PRICES: Dict[str, Decimal] = {
        "ADULT": Decimal("25.00"),
        "CHILD": Decimal("15.00"),
        "SENIOR": Decimal("20.00"),
        "STUDENT": Decimal("18.00"),
    }
    PIX_WEBHOOK_SECRET: str = "changeme-pix"
    PIX_QR_BASE_URL: str = "https://api.cinexplorer.com/pix/qr"
    TICKET_VERIFY_BASE_URL: str = "https://api.cinexplorer.com/tickets"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    def assemble_db_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

settings = Settings()
settings.DATABASE_URL = settings.assemble_db_url()
