"""
Daily Challenge Schemas
"""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field


class ChallengeReward(BaseModel):
    """Reward granted when a daily challenge is completed"""
    gems: int = Field(default=0, ge=0)
    coins: int = Field(default=0, ge=0)


class DailyChallenge(BaseModel):
    """
    One entry of the challenge roster

    All users get the same challenge on the same calendar day.
    """
    id: str = Field(..., description="Roster identifier (ej: 'tower_floor_20')")
    type: str = Field(..., description="Metric the user must submit")
    title: str
    description: str
    requirement: int = Field(..., gt=0, description="Minimum value to complete the challenge")
    reward: ChallengeReward
    icon: str = ""


class ChallengeStatusResponse(BaseModel):
    """Today's challenge and the user's completion state"""
    challenge: DailyChallenge
    isCompleted: bool
    totalChallengesCompleted: int
    lastChallengeDate: Optional[datetime] = None
    secondsUntilNext: int
    timeUntilNext: str


class CompleteChallengeRequest(BaseModel):
    """Proof of completion submitted by the client"""
    challengeType: str = Field(..., min_length=1)
    value: int = Field(..., description="Value reached for the challenge metric")


class CompleteChallengeResponse(BaseModel):
    success: bool = True
    message: str
    reward: ChallengeReward
    gems: int
    coins: int
    challengesCompleted: int
