from atams import AtamsBaseSettings


class Settings(AtamsBaseSettings):
    """
    Application Settings

    Inherits from AtamsBaseSettings which includes:
    - DATABASE_URL (required)
    - ATLAS_SSO_URL, ATLAS_APP_CODE, ATLAS_ENCRYPTION_KEY, ATLAS_ENCRYPTION_IV
    - ENCRYPTION_ENABLED, ENCRYPTION_KEY, ENCRYPTION_IV (response encryption)
    - LOGGING_ENABLED, LOG_LEVEL, LOG_TO_FILE, LOG_FILE_PATH
    - CORS_ORIGINS, CORS_ALLOW_CREDENTIALS, CORS_ALLOW_METHODS, CORS_ALLOW_HEADERS
    - RATE_LIMIT_ENABLED, RATE_LIMIT_REQUESTS, RATE_LIMIT_WINDOW
    - DEBUG

    All settings can be overridden via .env file or by redefining them here.
    """
    APP_NAME: str = "HRIS Attendance Rules"
    APP_VERSION: str = "1.0.0"

    # Wall-clock zone for calendar days and policy times
    TIMEZONE: str = "Europe/Tirane"

    # Directory exposes flex_mode; when False nobody is exempt
    FLEX_MODE_SUPPORTED: bool = True

    # Attendance policy
    RULE_CHECKIN_LATE_AFTER: str = "09:05:00"
    RULE_CHECKOUT_AUTO_AT: str = "17:00:00"
    RULE_LUNCH_WINDOW_START: str = "12:00:00"
    RULE_LUNCH_WINDOW_END: str = "13:00:00"
    RULE_LUNCH_MAX_MIN: int = 60
    RULE_LUNCH_MIN_AFTER_CHECKIN_MIN: int = 60
    RULE_LUNCH_MIN_BEFORE_CHECKOUT_MIN: int = 120
    RULE_MINI_BREAK_MAX_MIN: int = 7
    RULE_MINI_BREAK_MAX_PER_DAY: int = 3
    RULE_MINI_BREAK_BEFORE_LIMIT: int = 2
    RULE_MINI_BREAK_AFTER_DEFAULT: int = 1
    RULE_MINI_BREAK_AFTER_FULL: int = 2
    RULE_TOTAL_BREAK_MAX_MIN: int = 60
    RULE_COMP_RATIO: int = 3
    RULE_NOTIFY_HOUR: int = 20

    # Scheduled jobs (triggered externally through maintenance endpoints)
    NOTIFY_BATCH_SIZE: int = 50


settings = Settings()
