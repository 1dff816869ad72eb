"""
Data models for the interview coach.
"""
import base64
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Dict, Any, List, Tuple


class _LabelEnum(str, Enum):
    """String enum that also accepts its values case-insensitively."""

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            for member in cls:
                if member.value.lower() == value.strip().lower():
                    return member
        return None


class Category(_LabelEnum):
    """Interview question categories."""
    BEHAVIORAL = "Behavioral"
    TECHNICAL = "Technical"


class Difficulty(_LabelEnum):
    """Interview question difficulties."""
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


@dataclass(frozen=True)
class Question:
    """A single interview question."""
    id: str
    category: Category
    difficulty: Difficulty
    text: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "category": self.category.value,
            "difficulty": self.difficulty.value,
            "text": self.text,
        }

    @classmethod
    def from_dict(cls, data: Any, category: Category, difficulty: Difficulty) -> 'Question':
        """Build a question from a stored document.

        Older documents stored the question as a bare string, in which case the
        session's category and difficulty are used.
        """
        if isinstance(data, str):
            return cls(id="", category=category, difficulty=difficulty, text=data)
        return cls(
            id=str(data.get("id", "")),
            category=Category(data.get("category", category)),
            difficulty=Difficulty(data.get("difficulty", difficulty)),
            text=data.get("text", ""),
        )


@dataclass(frozen=True)
class Feedback:
    """Qualitative feedback on one answer. Always complete."""
    clarity: str
    conciseness: str
    overall_quality: str
    suggestions: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "clarity": self.clarity,
            "conciseness": self.conciseness,
            "overallQuality": self.overall_quality,
            "suggestions": self.suggestions,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Feedback':
        return cls(
            clarity=data.get("clarity", ""),
            conciseness=data.get("conciseness", ""),
            overall_quality=data.get("overallQuality", data.get("overall_quality", "")),
            suggestions=data.get("suggestions", ""),
        )


@dataclass(frozen=True)
class Exchange:
    """One answered question: the question, the transcribed answer, the feedback."""
    question: Question
    answer: str
    feedback: Feedback

    def to_dict(self) -> Dict[str, Any]:
        return {
            "question": self.question.to_dict(),
            "answer": self.answer,
            "feedback": self.feedback.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], category: Category, difficulty: Difficulty) -> 'Exchange':
        return cls(
            question=Question.from_dict(data.get("question", ""), category, difficulty),
            answer=data.get("answer", ""),
            feedback=Feedback.from_dict(data.get("feedback") or {}),
        )


@dataclass(frozen=True)
class Session:
    """An ordered run of exchanges sharing a category and difficulty."""
    id: str
    created_at: float
    category: Category
    difficulty: Difficulty
    exchanges: Tuple[Exchange, ...] = field(default_factory=tuple)

    @classmethod
    def finalize(cls, category: Category, difficulty: Difficulty,
                 exchanges: List[Exchange], created_at: Optional[float] = None) -> 'Session':
        """Freeze an in-progress exchange list into a session record."""
        return cls(
            id=uuid.uuid4().hex,
            created_at=created_at if created_at is not None else time.time(),
            category=category,
            difficulty=difficulty,
            exchanges=tuple(exchanges),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.created_at,
            "category": self.category.value,
            "difficulty": self.difficulty.value,
            "exchanges": [exchange.to_dict() for exchange in self.exchanges],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Session':
        category = Category(data["category"])
        difficulty = Difficulty(data["difficulty"])
        return cls(
            id=str(data.get("id", "")),
            created_at=float(data.get("timestamp") or time.time()),
            category=category,
            difficulty=difficulty,
            exchanges=tuple(
                Exchange.from_dict(item, category, difficulty)
                for item in (data.get("exchanges") or [])
            ),
        )


@dataclass(frozen=True)
class AudioArtifact:
    """Captured audio handed from the recorder to the transcription client."""
    data: bytes
    mime_type: str
    sample_rate: int = 16000
    duration_seconds: float = 0.0

    def to_data_uri(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


@dataclass(frozen=True)
class Identity:
    """The signed-in user that history is scoped to."""
    uid: str
    email: Optional[str] = None
