"""
Pydantic schemas for progress-service

All schemas use Pydantic v2 syntax with ConfigDict
"""
from enum import Enum
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from typing import Optional, List, Tuple
from datetime import datetime

from chemquest.config import get_settings

settings = get_settings()


# ============= ENUMS =============

class Rank(str, Enum):
    """Progression tiers, lowest first"""
    BRONZE = "Bronze"
    SILVER = "Silver"
    GOLD = "Gold"
    PLATINUM = "Platinum"
    DIAMOND = "Diamond"


def rank_table() -> List[Tuple[Rank, int]]:
    """Ranks with their inclusive lower XP bound, ascending"""
    table = [(Rank(name), threshold) for name, threshold in settings.RANK_THRESHOLDS.items()]
    return sorted(table, key=lambda entry: entry[1])


def rank_for_xp(total_xp: int) -> Rank:
    """Highest rank whose threshold total_xp reaches (negative counts as 0)"""
    total_xp = max(total_xp, 0)
    current = Rank.BRONZE
    for rank, threshold in rank_table():
        if total_xp >= threshold:
            current = rank
    return current


# ============= USER PROGRESS RECORD =============

class UserProgressRecord(BaseModel):
    """
    Stored progress of one user.

    Rule engines never mutate a record in place; they return a copy
    built with ``model_copy(update=...)``. model_copy skips validation,
    so an engine that changes totalXP also sets currentRank.
    """
    userId: str
    username: str
    displayName: str
    email: Optional[str] = None
    role: str = "student"
    subscriptionTier: str = "free"

    totalXP: int = Field(default=0, ge=0)
    currentRank: Rank = Rank.BRONZE
    streakCount: int = Field(default=1, ge=1)
    lastLogin: datetime
    totalCoins: int = Field(default=0, ge=0)
    gems: int = Field(default=0, ge=0)
    ownedItems: List[str] = Field(default_factory=list)

    referralCode: str
    referredBy: Optional[str] = None
    referralCount: int = Field(default=0, ge=0)

    lastChallengeDate: Optional[datetime] = None
    challengesCompleted: int = Field(default=0, ge=0)

    createdAt: datetime
    updatedAt: datetime
    version: int = Field(default=0, ge=0, description="Optimistic lock counter")

    @field_validator('ownedItems')
    @classmethod
    def dedupe_owned_items(cls, v: List[str]) -> List[str]:
        """Owned items behave as a set; keep first-seen order"""
        return list(dict.fromkeys(v))

    @model_validator(mode="after")
    def derive_rank(self) -> "UserProgressRecord":
        """currentRank always follows totalXP"""
        self.currentRank = rank_for_xp(self.totalXP)
        return self

    model_config = ConfigDict(from_attributes=True)


# ============= AUTH =============

class CurrentUser(BaseModel):
    """Identity extracted from a verified access token"""
    id: str
    role: str = "student"
    subscriptionTier: str = "free"


class SignUpRequest(BaseModel):
    """Sign up request schema"""
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=8, description="Password (Cognito password policy applies)")
    username: str = Field(..., pattern=r"^[a-zA-Z0-9_]{3,20}$", description="3-20 chars, alphanumeric and underscores")
    displayName: str = Field(..., min_length=1, max_length=50)


class SignUpResponse(BaseModel):
    """Sign up response schema"""
    message: str
    userId: str
    username: str
    displayName: str
    referralCode: str
    confirmationRequired: bool


class LoginRequest(BaseModel):
    """Login request schema"""
    email: EmailStr
    password: str


class LoginResponse(BaseModel):
    """Login response schema"""
    accessToken: str
    idToken: str
    refreshToken: Optional[str] = None
    expiresIn: int
    tokenType: str = "Bearer"


# ============= STATUS =============

class RankProgress(BaseModel):
    """Where the user sits between two rank thresholds"""
    currentRank: Rank
    nextRank: Optional[Rank] = None
    currentThreshold: int
    nextThreshold: Optional[int] = None
    xpToNextRank: int
    progressPercent: int = Field(..., ge=0, le=100)


class UserStatus(BaseModel):
    """Schema for user status (XP, rank, streak, coins, gems)"""
    userId: str
    username: str
    displayName: str
    totalXP: int
    currentRank: Rank
    rankProgress: RankProgress
    streakCount: int
    streakMultiplier: float
    lastLogin: datetime
    totalCoins: int = Field(default=0, ge=0)
    gems: int = Field(default=0, ge=0)
    ownedItems: List[str]
    challengesCompleted: int
    referralCount: int

    model_config = ConfigDict(from_attributes=True)


# ============= QUIZ =============

class QuizCompleteRequest(BaseModel):
    """Schema for reporting a finished quiz"""
    correctAnswers: int = Field(..., description="Number of correct answers")
    totalQuestions: int = Field(..., description="Number of questions in the quiz")


class QuizCompleteResponse(BaseModel):
    """Schema for quiz completion result"""
    success: bool = True
    xpEarned: int
    baseXP: int
    completionBonus: int
    streakMultiplier: float
    newTotalXP: int
    currentStreak: int
    previousRank: Rank
    newRank: Rank
    rankChanged: bool


# ============= REFERRALS =============

class RedeemReferralRequest(BaseModel):
    """Schema for redeeming a referral code"""
    referralCode: str = Field(..., min_length=1, max_length=16)


class ReferralReward(BaseModel):
    coins: int = Field(default=0, ge=0)
    gems: int = Field(default=0, ge=0)


class RedeemReferralResponse(BaseModel):
    """Schema for referral redemption result"""
    success: bool = True
    message: str
    referrerName: str
    coinsEarned: int
    gemsEarned: int
    totalCoins: int
    gems: int


class ReferralStats(BaseModel):
    """Schema for the user's own referral information"""
    referralCode: str
    formattedCode: str
    referralCount: int
    hasUsedReferral: bool


# ============= LEADERBOARD =============

class LeaderboardEntry(BaseModel):
    position: int
    userId: str
    displayName: str
    totalXP: int
    currentRank: Rank
    streakCount: int


class LeaderboardResponse(BaseModel):
    entries: List[LeaderboardEntry]
    total: int
