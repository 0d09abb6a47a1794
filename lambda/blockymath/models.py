"""
Data models for the Blocky Math Champ Alexa Skill.

This module defines the player data that is kept between sessions:
the player profile with game preferences and totals, and the record of
each completed session for the mistake review.
"""

from dataclasses import dataclass, field
from datetime import datetime

from blockymath.problem_generator import DEFAULT_DIFFICULTY, DEFAULT_PROBLEM_COUNT
from blockymath.problem_queue import MistakeSummary, SessionSummary


@dataclass
class PlayerProfile:
    """
    Player profile containing game preferences and overall statistics.
    """
    user_id: str
    difficulty: str = DEFAULT_DIFFICULTY
    problem_count: int = DEFAULT_PROBLEM_COUNT
    sessions_completed: int = 0
    perfect_sessions: int = 0
    total_score: int = 0
    last_played: datetime | None = None
    created_at: datetime = field(default_factory=datetime.now)

    def record_session(self, record: "SessionRecord") -> None:
        """Add a completed session to the totals."""
        self.sessions_completed += 1
        if record.perfect:
            self.perfect_sessions += 1
        self.total_score += record.score
        self.last_played = record.finished_at

    def to_dict(self) -> dict:
        """Convert to dictionary for persistence."""
        return {
            "user_id": self.user_id,
            "difficulty": self.difficulty,
            "problem_count": self.problem_count,
            "sessions_completed": self.sessions_completed,
            "perfect_sessions": self.perfect_sessions,
            "total_score": self.total_score,
            "last_played": self.last_played.isoformat() if self.last_played else None,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PlayerProfile":
        """Create from dictionary (from persistence)."""
        last_played = None
        if data.get("last_played"):
            last_played = datetime.fromisoformat(data["last_played"])

        created_at = datetime.now()
        if data.get("created_at"):
            created_at = datetime.fromisoformat(data["created_at"])

        # DynamoDB hands numbers back as Decimal
        return cls(
            user_id=data["user_id"],
            difficulty=data.get("difficulty", DEFAULT_DIFFICULTY),
            problem_count=int(data.get("problem_count", DEFAULT_PROBLEM_COUNT)),
            sessions_completed=int(data.get("sessions_completed", 0)),
            perfect_sessions=int(data.get("perfect_sessions", 0)),
            total_score=int(data.get("total_score", 0)),
            last_played=last_played,
            created_at=created_at,
        )


@dataclass
class SessionRecord:
    """A completed session as kept for the mistake review."""

    finished_at: datetime
    difficulty: str
    problem_count: int
    total_attempts: int
    score: int = 0
    blocks_awarded: int = 0
    mistakes: list[MistakeSummary] = field(default_factory=list)

    @property
    def perfect(self) -> bool:
        return not self.mistakes

    @classmethod
    def from_summary(
        cls,
        summary: SessionSummary,
        difficulty: str,
        finished_at: datetime | None = None,
    ) -> "SessionRecord":
        """Create a record from the queue manager's session summary."""
        return cls(
            finished_at=finished_at or datetime.now(),
            difficulty=difficulty,
            problem_count=summary.problem_count,
            total_attempts=summary.total_attempts,
            score=summary.score,
            blocks_awarded=summary.structure_blocks_awarded,
            mistakes=list(summary.mistakes),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for persistence."""
        return {
            "finished_at": self.finished_at.isoformat(),
            "difficulty": self.difficulty,
            "problem_count": self.problem_count,
            "total_attempts": self.total_attempts,
            "score": self.score,
            "blocks_awarded": self.blocks_awarded,
            "mistakes": [mistake.to_dict() for mistake in self.mistakes],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SessionRecord":
        """Create from dictionary (from persistence)."""
        return cls(
            finished_at=datetime.fromisoformat(data["finished_at"]),
            difficulty=data.get("difficulty", DEFAULT_DIFFICULTY),
            problem_count=int(data.get("problem_count", 0)),
            total_attempts=int(data.get("total_attempts", 0)),
            score=int(data.get("score", 0)),
            blocks_awarded=int(data.get("blocks_awarded", 0)),
            mistakes=[MistakeSummary.from_dict(mistake) for mistake in data.get("mistakes", [])],
        )
