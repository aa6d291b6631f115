from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str

    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 120  # 2 hours
    REFRESH_TOKEN_EXPIRE_MINUTES: int = 10080  # 7 days

    SCHOOL_NAME: str = "Shree Durga Saraswati Janata Secondary School"
    SCHOOL_PHONE: str = ""

    # Absence notifications
    SMS_PROVIDER_API_KEY: str = ""
    SMS_PROVIDER_URL: str = ""
    SMS_TIMEOUT_SECONDS: float = 10.0

    # Monthly invoice generation / overdue marking
    FEE_SCHEDULER_ENABLED: bool = False
    FEE_SCHEDULER_HOUR: int = 1  # Hour of day to run the fee job (0-23)

    LOW_ATTENDANCE_THRESHOLD: int = 75

    TIMEZONE: str = "Asia/Kathmandu"
    CURRENCY: str = "NPR"

    class Config:
        env_file = ".env"


settings = Settings()
