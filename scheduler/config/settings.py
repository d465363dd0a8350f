"""
Configuration settings for the CPM scheduling engine.
Load configuration from environment variables or a .env file.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
env_file = Path(__file__).parent.parent.parent / '.env'
if env_file.exists():
    load_dotenv(env_file)


def _parse_int_list(value: str) -> list[int]:
    """Parse a comma-separated list of integers ("1,2,3")."""
    return [int(part) for part in value.split(',') if part.strip()]


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Settings:
    """Application settings loaded from environment variables."""

    # Project paths
    PROJECT_ROOT = Path(__file__).parent.parent.parent

    # Logging
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    LOG_DIR = Path(os.getenv('CPM_LOG_DIR', str(PROJECT_ROOT / 'logs')))
    LOG_TO_FILE = _parse_bool(os.getenv('CPM_LOG_TO_FILE', 'false'))

    # ============================================================================
    # CPM Engine
    # ============================================================================
    # Fixed-point iteration cap for forward and backward passes
    CPM_MAX_ITERATIONS = int(os.getenv('CPM_MAX_ITERATIONS', '50'))

    # Weekday indices, 0=Sunday ... 6=Saturday
    DEFAULT_WORKING_DAYS = _parse_int_list(os.getenv('CPM_WORKING_DAYS', '1,2,3,4,5'))

    # ============================================================================
    # Health / Risk Thresholds (work days)
    # ============================================================================
    HEALTH_VARIANCE_THRESHOLD_DAYS = int(os.getenv('CPM_HEALTH_VARIANCE_DAYS', '3'))
    HEALTH_LOW_FLOAT_DAYS = int(os.getenv('CPM_HEALTH_LOW_FLOAT_DAYS', '2'))
    NEAR_CRITICAL_FLOAT_DAYS = int(os.getenv('CPM_NEAR_CRITICAL_DAYS', '5'))

    @classmethod
    def validate_required_settings(cls) -> list[str]:
        """
        Validate that settings hold usable values.
        Returns list of problems found (empty if valid).
        """
        problems = []

        if cls.CPM_MAX_ITERATIONS < 1:
            problems.append('CPM_MAX_ITERATIONS must be >= 1')

        bad_days = [d for d in cls.DEFAULT_WORKING_DAYS if d < 0 or d > 6]
        if bad_days:
            problems.append(f'CPM_WORKING_DAYS has indices outside 0..6: {bad_days}')
        if not cls.DEFAULT_WORKING_DAYS:
            problems.append('CPM_WORKING_DAYS must name at least one weekday')

        if cls.HEALTH_VARIANCE_THRESHOLD_DAYS < 1:
            problems.append('CPM_HEALTH_VARIANCE_DAYS must be >= 1')

        return problems


# Create settings instance
settings = Settings()
