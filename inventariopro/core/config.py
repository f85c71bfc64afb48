import os
import logging
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel

logger = logging.getLogger(__name__)

# .env at the repository root
ENV_PATH = Path(__file__).parent.parent.parent / '.env'

DEV_SECRET_KEY = "dev-secret-change-me"


class Settings(BaseModel):
    """
    Application configuration.

    Built once at process start and handed to create_app(); handlers read it
    from the application context instead of module globals.
    """
    secret_key: str = DEV_SECRET_KEY
    database_url: str = "sqlite:///./inventariopro.db"
    api_prefix: str = "/api"
    debug: bool = False

    # JWT
    jwt_algorithm: str = "HS256"
    access_token_expire_days: int = 7

    password_min_length: int = 6
    cors_origins: List[str] = ["*"]

    # Pagination
    default_page_size: int = 10
    max_page_size: int = 100

    @classmethod
    def from_env(cls, env_path: Optional[Path] = None) -> "Settings":
        env_path = env_path or ENV_PATH
        if env_path.exists():
            logger.info(f"Loading environment from: {env_path}")
            load_dotenv(dotenv_path=env_path, override=True)
        else:
            logger.warning(f".env file not found at: {env_path}")

        secret_key = os.getenv("SECRET_KEY")
        if not secret_key:
            logger.warning("SECRET_KEY is not set, falling back to the development key")
            secret_key = DEV_SECRET_KEY

        # Database
        db_host = os.getenv("DB_HOST", "localhost")
        db_port = os.getenv("DB_PORT", "3306")
        db_name = os.getenv("DB_NAME", "inventario_pro")
        db_user = os.getenv("DB_USER", "root")
        db_password = os.getenv("DB_PASSWORD", "")
        database_url = os.getenv(
            "DATABASE_URL",
            f"mysql+pymysql://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}"
        )

        cors_origins = [
            origin.strip()
            for origin in os.getenv("CORS_ORIGINS", "*").split(",")
            if origin.strip()
        ]

        return cls(
            secret_key=secret_key,
            database_url=database_url,
            api_prefix=os.getenv("API_PREFIX", "/api"),
            debug=os.getenv("DEBUG", "False").lower() == "true",
            jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
            access_token_expire_days=int(os.getenv("ACCESS_TOKEN_EXPIRE_DAYS", "7")),
            password_min_length=int(os.getenv("PASSWORD_MIN_LENGTH", "6")),
            cors_origins=cors_origins or ["*"],
            default_page_size=int(os.getenv("DEFAULT_PAGE_SIZE", "10")),
            max_page_size=int(os.getenv("MAX_PAGE_SIZE", "100")),
        )
