from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    # Storage: "sqlite" | "memory" | "blob"
    STORAGE_MODE: str = "sqlite"
    DATABASE_URL: str = "sqlite+aiosqlite:///./taskflow.db"
    BLOB_DIR: str = ".blobs"

    # Security
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    BCRYPT_ROUNDS: int = 12
    ADMIN_CODE: str

    ENVIRONMENT: str = "development"
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    LOG_LEVEL: str = "INFO"
    LOG_FILE: str | None = None

    # Demo data
    SEED_DEMO_DATA: bool = False
    DEMO_ADMIN_PASSWORD: str | None = None
    DEMO_USER_PASSWORD: str | None = None

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    class Config:
        env_file = ".env"
        extra = "ignore"

settings = Settings()
