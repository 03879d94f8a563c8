import math
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Dict, List, Optional


class ProfileNotFoundError(LookupError):
    """Raised when a user has no profile document to gamify against."""


def _to_number(value, cast=float):
    # NaN and infinities count as missing
    try:
        number = float(value)
        if not math.isfinite(number):
            return cast(0)
        return cast(number)
    except (TypeError, ValueError, OverflowError):
        return cast(0)


def _to_int(value):
    # int("2.0") fails, int(float("2.0")) does not
    return _to_number(value, int)


@dataclass
class DailyLog:
    date: str
    studyDuration: float = 0.0
    quranPagesRead: int = 0
    expenses: float = 0.0
    abstained: bool = False
    customHabits: Dict[str, bool] = field(default_factory=dict)
    caloriesLogged: bool = False
    notes: str = ""
    xpAwarded: int = 0

    @classmethod
    def from_dict(cls, data):
        data = data or {}
        return cls(
            date=str(data.get("date", "")),
            studyDuration=max(0.0, _to_number(data.get("studyDuration"))),
            quranPagesRead=max(0, _to_int(data.get("quranPagesRead"))),
            expenses=max(0.0, _to_number(data.get("expenses"))),
            abstained=bool(data.get("abstained", False)),
            customHabits={str(k): bool(v) for k, v in (data.get("customHabits") or {}).items()},
            caloriesLogged=bool(data.get("caloriesLogged", False)),
            notes=data.get("notes") or "",
            xpAwarded=_to_int(data.get("xpAwarded")),
        )

    def to_dict(self):
        return asdict(self)


@dataclass
class UserProfile:
    uid: str
    displayName: str = ""
    email: str = ""
    createdAt: Optional[str] = None
    height: Optional[float] = None  # cm
    xp: int = 0
    level: int = 1
    badges: List[str] = field(default_factory=list)
    highestLevel: int = 1  # level-up rewards are paid only above this

    @classmethod
    def from_dict(cls, data):
        data = data or {}
        return cls(
            uid=str(data.get("uid", "")),
            displayName=data.get("displayName") or "",
            email=data.get("email") or "",
            createdAt=data.get("createdAt"),
            height=data.get("height"),
            xp=_to_int(data.get("xp")),
            level=max(1, _to_int(data.get("level")) or 1),
            badges=list(data.get("badges") or []),
            highestLevel=max(1, _to_int(data.get("highestLevel")), _to_int(data.get("level"))),
        )

    def to_dict(self):
        return asdict(self)


@dataclass
class Habit:
    id: str
    name: str
    icon: str = "✅"
    createdAt: Optional[str] = None
    currentStreak: int = 0
    longestStreak: int = 0
    lastCompletedDate: Optional[str] = None

    @classmethod
    def from_dict(cls, data):
        data = data or {}
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name") or "",
            icon=data.get("icon") or "✅",
            createdAt=data.get("createdAt"),
            currentStreak=max(0, _to_int(data.get("currentStreak"))),
            longestStreak=max(0, _to_int(data.get("longestStreak"))),
            # empty string used to mean "never" in older documents
            lastCompletedDate=data.get("lastCompletedDate") or None,
        )

    def to_dict(self):
        return asdict(self)


@dataclass
class HabitEntry:
    date: str
    completedHabitIds: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data):
        data = data or {}
        return cls(date=str(data.get("date", "")),
                   completedHabitIds=list(data.get("completedHabitIds") or []))

    def to_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class Reward:
    id: str
    name: str
    description: str
    type: str  # title | badge | quote
    rarity: str  # common | rare | legendary


@dataclass
class Quest:
    date: str
    description: str
    completed: bool = False
    penaltyApplied: bool = False

    @classmethod
    def from_dict(cls, data):
        data = data or {}
        return cls(
            date=str(data.get("date", "")),
            description=data.get("description") or "",
            completed=bool(data.get("completed", False)),
            penaltyApplied=bool(data.get("penaltyApplied", False)),
        )

    def to_dict(self):
        return asdict(self)


@dataclass
class MealEntry:
    id: str
    date: str
    name: str
    calories: int = 0

    @classmethod
    def from_dict(cls, data):
        return cls(id=str(data.get("id", "")), date=str(data.get("date", "")),
                   name=data.get("name") or "", calories=max(0, _to_int(data.get("calories"))))

    def to_dict(self):
        return asdict(self)


@dataclass
class WeightEntry:
    id: str
    date: str
    weight: float

    @classmethod
    def from_dict(cls, data):
        return cls(id=str(data.get("id", "")), date=str(data.get("date", "")),
                   weight=_to_number(data.get("weight")))

    def to_dict(self):
        return asdict(self)


@dataclass
class JournalEntry:
    id: str
    title: str
    content: str
    tags: List[str] = field(default_factory=list)
    createdAt: str = field(default_factory=lambda: datetime.now().isoformat(timespec="seconds"))

    @classmethod
    def from_dict(cls, data):
        return cls(id=str(data.get("id", "")), title=data.get("title") or "",
                   content=data.get("content") or "", tags=list(data.get("tags") or []),
                   createdAt=data.get("createdAt") or "")

    def to_dict(self):
        return asdict(self)
