"""
Configuration settings for Progress Service
"""
from functools import lru_cache
from typing import Optional, List, Dict
from pydantic_settings import BaseSettings
from pydantic import ConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # App
    APP_NAME: str = "Progress Service"
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = "local"
    LOG_LEVEL: str = "INFO"

    # AWS
    AWS_REGION: str = "us-east-1"
    AWS_ACCESS_KEY_ID: Optional[str] = None  # Only for LocalStack, ECS uses IAM roles
    AWS_SECRET_ACCESS_KEY: Optional[str] = None  # Only for LocalStack, ECS uses IAM roles

    # DynamoDB
    DYNAMODB_ENDPOINT: Optional[str] = None  # None uses AWS, set for LocalStack
    DYNAMODB_PROGRESS_TABLE: str = "chemquest-dev-user-progress"
    CREATE_TABLES_ON_STARTUP: bool = False

    # Cognito Authentication
    COGNITO_USER_POOL_ID: str = "us-east-1_ChemQuest"
    COGNITO_CLIENT_ID: str = "chemquest-web-client"
    COGNITO_REGION: str = "us-east-1"

    # Ranks (inclusive lower bounds)
    RANK_THRESHOLDS: Dict[str, int] = {
        "Bronze": 0,
        "Silver": 500,
        "Gold": 1500,
        "Platinum": 3000,
        "Diamond": 5000,
    }

    # Streaks
    STREAK_SAME_DAY_HOURS: int = 24
    STREAK_LAPSE_HOURS: int = 48
    STREAK_BONUS_DAYS: int = 4
    STREAK_BONUS_MULTIPLIER: float = 1.1
    STREAK_MAX_BONUS_DAYS: int = 7
    STREAK_MAX_BONUS_MULTIPLIER: float = 1.2

    # Quiz XP
    XP_PER_CORRECT_ANSWER: int = 10
    QUIZ_COMPLETION_BONUS_XP: int = 20

    # Referrals
    REFERRAL_REWARD_COINS: int = 500
    REFERRAL_REWARD_GEMS: int = 10
    REFERRAL_CODE_LENGTH: int = 6
    REFERRAL_CODE_MAX_ATTEMPTS: int = 10

    # Leaderboard
    LEADERBOARD_DEFAULT_LIMIT: int = 50
    LEADERBOARD_MAX_LIMIT: int = 100

    # CORS
    CORS_ORIGINS: List[str] = ["*"]

    model_config = ConfigDict(
        env_file=".env",
        case_sensitive=True
    )


@lru_cache()
def get_settings() -> Settings:
    """Returns cached settings instance (singleton)"""
    return Settings()
