from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = Field(default="Punch Clock API")
    tz_default: str = Field(default="America/Sao_Paulo", alias="TZ_DEFAULT")

    # Balance
    expected_daily_hours: int = Field(default=8, alias="EXPECTED_DAILY_HOURS")

    # History / punches
    history_limit: int = Field(default=100, alias="HISTORY_LIMIT")
    require_location: bool = Field(default=True, alias="REQUIRE_LOCATION")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


settings = Settings()
