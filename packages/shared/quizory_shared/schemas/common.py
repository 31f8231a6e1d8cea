from enum import Enum
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel


class Role(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    USER = "user"


# Explicit rank table; never compare on declaration order
ROLE_RANK: dict["Role", int] = {
    Role.USER: 1,
    Role.ADMIN: 2,
    Role.OWNER: 3,
}


class SubscriptionPlan(str, Enum):
    FREE = "free"
    TRIAL = "trial"
    PREMIUM = "premium"


class HelpBehavior(str, Enum):
    DOUBLE_SCORE = "double_score"
    MARKER_ONLY = "marker_only"


class QuizStatus(str, Enum):
    DRAFT = "draft"
    LIVE = "live"
    FINISHED = "finished"


class QuestionType(str, Enum):
    OPEN_ANSWER = "open_answer"
    MULTIPLE_CHOICE = "multiple_choice"
    TRUE_FALSE = "true_false"
    MATCHING = "matching"


class Language(str, Enum):
    SR = "sr"
    EN = "en"


# Features locked behind a paid (or trial) plan
class Feature(str, Enum):
    LEAGUES = "leagues"
    QUESTION_BANK = "questionBank"
    MEMBERS = "members"
    SHARE = "share"


T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    items: List[T]
    total: int
    page: int
    page_size: int


class ErrorBody(BaseModel):
    code: str
    message: str
    status: int


class APIError(BaseModel):
    error: Optional[ErrorBody] = None
