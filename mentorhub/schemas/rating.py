# mentorhub/schemas/rating.py
"""
Rating & mentor statistics schemas.

``rating`` is unbounded here; the ledger clamps out-of-range
values into 1..5 instead of rejecting them.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Dict, List, Optional
from datetime import datetime


# ======================
# RATING SCHEMAS
# ======================

class RatingCreate(BaseModel):
    session_id: int = Field(..., description="Session identifier")
    mentor_id: int = Field(..., description="Mentor the mentee is rating")
    rating: int = Field(..., description="Stars; clamped into 1..5")
    feedback: Optional[str] = Field(None, max_length=1000, description="Optional feedback")

    @field_validator("feedback")
    @classmethod
    def strip_feedback(cls, v):
        return v.strip() if v else ""


class Rating(BaseModel):
    id: int
    session_id: int
    mentee_id: int
    mentor_id: int
    rating: int
    feedback: Optional[str] = ""
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class RatingSubmitResponse(BaseModel):
    message: str
    rating: Rating
    session_status: str
    statistics: Optional["MentorStatisticsResponse"] = None


class MentorRatingsPage(BaseModel):
    ratings: List[Rating]
    average_rating: float
    total_ratings: int
    has_more: bool


# ======================
# MENTOR STATISTICS SCHEMAS
# ======================

class MentorStatisticsResponse(BaseModel):
    mentor_id: int
    average_rating: float = Field(..., description="Average rating, one decimal place")
    total_ratings: int
    rating_distribution: Dict[str, int] = Field(..., description="Count for each star value 1..5")
    students_helped: int = Field(..., description="Distinct mentees across completed sessions")
    total_minutes: int
    last_updated: Optional[datetime] = None


class RecomputeResult(BaseModel):
    mentor_id: int
    mentor_name: Optional[str] = None
    success: bool
    error: Optional[str] = None
    statistics: Optional[MentorStatisticsResponse] = None


class RecomputeAllResponse(BaseModel):
    total_mentors: int
    updated_count: int
    results: List[RecomputeResult]
    message: str


RatingSubmitResponse.model_rebuild()
