"""Activity log models: check-ins, exercises, completions"""
from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4
from pydantic import BaseModel, Field, field_validator


class TimeSlot(str, Enum):
    """Recurring exercise windows"""
    QUICK = "Quick"
    FULL = "Full"


class ExerciseDifficulty(str, Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


class CheckIn(BaseModel):
    """One posture check-in stored on device"""
    id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(default_factory=datetime.now)


class Exercise(BaseModel):
    """A posture exercise with step-by-step instructions and timing"""
    id: UUID = Field(default_factory=uuid4)
    title: str
    description: str
    instructions: list[str] = Field(default_factory=list)
    duration_seconds: int
    difficulty: ExerciseDifficulty = ExerciseDifficulty.EASY

    @property
    def duration_label(self) -> str:
        """Human-friendly duration, e.g. '1m 30s' or '50 sec'"""
        minutes, seconds = divmod(self.duration_seconds, 60)
        if minutes > 0:
            return f"{minutes}m {seconds}s" if seconds > 0 else f"{minutes} min"
        return f"{seconds} sec"


class ExerciseCompletion(BaseModel):
    """A completed exercise session"""
    id: UUID = Field(default_factory=uuid4)
    exercise_id: UUID
    completed_at: datetime = Field(default_factory=datetime.now)
    duration_seconds: int  # actual time spent
    time_slot: TimeSlot

    @field_validator('duration_seconds')
    @classmethod
    def validate_duration(cls, v: int) -> int:
        """Durations are wall-clock seconds and cannot be negative"""
        if v < 0:
            raise ValueError(f"Invalid duration: {v}. Must be >= 0 seconds")
        return v


class ExerciseLog(BaseModel):
    """On-disk layout of exercises.json"""
    exercises: list[Exercise] = Field(default_factory=list)
    completions: list[ExerciseCompletion] = Field(default_factory=list)


def default_exercises() -> list[Exercise]:
    """Exercise catalog seeded on first run"""
    return [
        Exercise(
            title="Neck Flexion",
            description="Gentle neck stretch to relieve tension",
            instructions=[
                "Begin by sitting comfortably in a chair or on the floor.",
                "Tilt your head forward until you feel a gentle stretch at the back of your neck.",
                "Hold this position for 15-30 seconds.",
                "Repeat",
            ],
            duration_seconds=90,
        ),
        Exercise(
            title="Chin Tucks",
            description="Fully strengthen your neck",
            instructions=[
                "Sit or stand with back straight, place 2 fingers on your chin.",
                "Gently push chin back like you are making a double chin.",
                "Hold 5 seconds.",
                "Release and repeat",
            ],
            duration_seconds=50,
        ),
        Exercise(
            title="Neck Tilts",
            description="Release shoulder tension",
            instructions=[
                "Stand or sit straight with arms by your sides.",
                "Lean head to one shoulder and hold for 10 seconds",
                "Lean head to other shoulder and hold for 10 seconds",
                "Repeat both sides",
            ],
            duration_seconds=70,
        ),
        Exercise(
            title="Wall Angel",
            description="Improve posture and shoulder mobility",
            instructions=[
                'Stand with your back against the wall, with your arms in a "W" shape.',
                'Slowly move your arms up to a "Y" shape and hold for 5 seconds',
                "Slowly move back down to the W and hold for 5 seconds.",
                "Repeat",
            ],
            duration_seconds=50,
            difficulty=ExerciseDifficulty.MEDIUM,
        ),
    ]
