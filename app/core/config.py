from pydantic_settings import BaseSettings, SettingsConfigDict
import os

class Settings(BaseSettings):
    APP_ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    REDIS_URL: str = "redis://localhost:6379/0"
    RQ_QUEUE: str = "waveforms"
    REGENERATE_JOB_TIMEOUT: int = 60 * 30

    STORAGE_BACKEND: str = "local"
    STORAGE_DIR: str = "./data"

    ALLOWED_AUDIO_EXTENSIONS: list[str] = [".mp3", ".wav", ".flac", ".m4a", ".aac", ".ogg"]

    # peaks per second kept in waveform_data.full
    WAVEFORM_SAMPLES_PER_SECOND: int = 20
    WAVEFORM_SIMPLIFIED_POINTS: int = 200
    # PCM rate used only for peak picking
    WAVEFORM_DECODE_SR: int = 8000
    WAVEFORM_NORMALIZE: bool = True
    WAVEFORM_MIN_PEAK: float = 0.02
    WAVEFORM_EXTRACT_TIMEOUT: float = 120.0

    VERSION_NUMBER_RETRIES: int = 3
    # seconds, multiplied by the attempt number
    VERSION_RETRY_BACKOFF: float = 0.05

    # user ids allowed to start batch jobs
    OPERATOR_USER_IDS: list[str] = []

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
os.makedirs(settings.STORAGE_DIR, exist_ok=True)
