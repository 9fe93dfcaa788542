"""
Database models for the SchoolQuiz Achievements API

All models should be imported here so Base.metadata knows about them.
"""
from app.models.user import User
from app.models.achievement import Achievement, UserAchievement, QuizCompletion

__all__ = [
    # User
    "User",
    # Achievement
    "Achievement",
    "UserAchievement",
    "QuizCompletion",
]
