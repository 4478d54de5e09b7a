from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env")

    APP_NAME: str = "SHIPTRACK"
    SECRET_KEY: str = "change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    DATABASE_URL: str = "sqlite+pysqlite:///./shiptrack.db"
    DEFAULT_BRANCH_NAME: str = "Main Branch"
    DEFAULT_BRANCH_ADDRESS: str = "1 Harbour Road"
    DEFAULT_WAREHOUSE_NAME: str = "Central Warehouse"
    DEFAULT_PORT_NAME: str = "Main Port"
    DEFAULT_PORT_COUNTRY: str = "N/A"
    DEFAULT_CARRIER_NAME: str = "Default Carrier"
    SHIPMENTS_LIST_MAX_ROWS: int = 500
    LOG_LEVEL: str = "INFO"
    METRICS_ENABLED: bool = True

settings = Settings()
