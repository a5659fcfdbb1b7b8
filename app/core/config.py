from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv
from pathlib import Path
from typing import Optional

ROOT_DIR = Path(__file__).resolve().parent.parent.parent

load_dotenv(Path(ROOT_DIR) / '.env')

class Settings(BaseSettings):
    TMDB_BASE_URL: str = "https://api.themoviedb.org/3"
    TMDB_IMAGE_BASE_URL: str = "https://image.tmdb.org/t/p/w500"
    TMDB_TOKEN: Optional[str] = None
    TMDB_API_KEY: Optional[str] = None
    TMDB_TIMEOUT: float = 10.0

    FIREBASE_CREDS_PATH: Optional[str] = None

    ROOM_STORE_BACKEND: str = "firestore"   # firestore / memory
    AUTH_BACKEND: str = "firebase"          # firebase / header
    ROOM_POLL_INTERVAL: float = 3.0
    ROOM_CREATE_ATTEMPTS: int = 3

    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = "app.log"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def FIREBASE_CREDS_PATH_ABSOLUTE(self) -> Optional[Path]:
        """Returns absolute path to Firebase credentials file"""
        if not self.FIREBASE_CREDS_PATH:
            return None
        return ROOT_DIR / self.FIREBASE_CREDS_PATH

    @property
    def tmdb_configured(self) -> bool:
        return bool(self.TMDB_TOKEN or self.TMDB_API_KEY)

settings = Settings()
