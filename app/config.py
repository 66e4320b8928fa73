from pydantic_settings import BaseSettings
from typing import Optional
from urllib.parse import quote_plus

class Settings(BaseSettings):
    postgres_user: str = "postgres"
    postgres_password: str = ""
    postgres_db: str = "bookstore"
    postgres_host: str = "localhost"
    postgres_port: str = "5432"

    # full URL wins over the postgres_* parts (tests use sqlite)
    sqlalchemy_url: Optional[str] = None

    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60

    ENV: str = "production"
    LOG_LEVEL: str = "INFO"

    MIDTRANS_SERVER_KEY: str
    MIDTRANS_CLIENT_KEY: str = ""
    MIDTRANS_IS_PRODUCTION: bool = False

    TRANSACTION_EXPIRY_MINUTES: int = 60 * 24
    SHIPMENTS_PER_PAGE: int = 10
    TRANSACTIONS_PER_PAGE: int = 10

    @property
    def database_url(self):
        if self.sqlalchemy_url:
            return self.sqlalchemy_url
        encoded_password = quote_plus(self.postgres_password)
        return (
            f"postgresql+psycopg2://{self.postgres_user}:"
            f"{encoded_password}@{self.postgres_host}:"
            f"{self.postgres_port}/{self.postgres_db}"
        )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "allow"

settings = Settings()
