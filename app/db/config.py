from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    DB_URL: str = "sqlite:///./data/tracks.db"
    DB_ECHO: bool = False
    DB_POOL_RECYCLE: int = 28000

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def url(self) -> str:
        # sync engine everywhere: API and worker share the pymysql driver
        url = self.DB_URL
        if url.startswith("mysql+aiomysql://"):
            url = url.replace("mysql+aiomysql://", "mysql+pymysql://", 1)
        if url.startswith("mysql://"):
            url = url.replace("mysql://", "mysql+pymysql://", 1)
        return url
