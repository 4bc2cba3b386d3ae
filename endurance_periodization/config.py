"""Configuration management for the endurance periodization engine."""

import logging
import os
from typing import List
from dotenv import load_dotenv

load_dotenv()


class Config:
    """Application configuration."""

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./endurance_periodization.db")

    # Fitness model time constants (days). Fixed domain parameters, not tunable.
    CTL_TIME_CONSTANT: float = 42.0
    ATL_TIME_CONSTANT: float = 7.0

    # Athlete fallbacks when no store or context value is available
    DEFAULT_FTP: float = float(os.getenv("DEFAULT_FTP", "250"))  # watts
    DEFAULT_WEIGHT_KG: float = float(os.getenv("DEFAULT_WEIGHT_KG", "70"))
    DEFAULT_CTL: float = float(os.getenv("DEFAULT_CTL", "50"))
    DEFAULT_ATL: float = float(os.getenv("DEFAULT_ATL", "50"))

    # Plan generation
    DEFAULT_WEEKLY_HOURS: float = float(os.getenv("DEFAULT_WEEKLY_HOURS", "8"))
    LOAD_PER_HOUR: float = 60.0  # TSS per hour of riding
    TRAINING_KEY_DAYS: str = os.getenv("TRAINING_KEY_DAYS", "1,3,5")  # 0=Mon, 6=Sun
    PATTERN_MIN_CONFIDENCE: float = 0.4  # patterns below this don't shape plans

    # Outcome analysis
    DEFAULT_LOOKBACK_DAYS: int = int(os.getenv("DEFAULT_LOOKBACK_DAYS", "90"))
    OUTCOME_FETCH_LIMIT: int = int(os.getenv("OUTCOME_FETCH_LIMIT", "200"))
    SESSION_FETCH_LIMIT: int = int(os.getenv("SESSION_FETCH_LIMIT", "200"))
    INTENSITY_LOAD_THRESHOLD: float = 80.0  # TSS
    INTENSITY_IF_THRESHOLD: float = 0.85
    PERSIST_MIN_CONFIDENCE: float = 0.5
    PERSIST_MIN_DATA_POINTS: int = 5

    # Application
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def get_key_days(cls) -> List[int]:
        """Parse and return the default key workout weekdays.

        Returns:
            List of integers representing key days (0=Monday, 6=Sunday)
        """
        if not cls.TRAINING_KEY_DAYS:
            return [1, 3, 5]

        key_days = []
        for day_str in cls.TRAINING_KEY_DAYS.split(','):
            try:
                day = int(day_str.strip())
                if 0 <= day <= 6 and day not in key_days:
                    key_days.append(day)
            except ValueError:
                continue

        return sorted(key_days) if key_days else [1, 3, 5]

    @classmethod
    def configure_logging(cls) -> None:
        """Configure root logging from LOG_LEVEL."""
        level = getattr(logging, cls.LOG_LEVEL.upper(), logging.INFO)
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


config = Config()
