# SQLModel definitions, imported here to ensure metadata is populated for create_all.
from .base import TenantMixin, TimestampMixin, UUIDMixin  # noqa: F401
from .organization import Organization  # noqa: F401
from .user import User  # noqa: F401
from .membership import Membership  # noqa: F401
from .team import Team, TeamAlias  # noqa: F401
from .category import Category  # noqa: F401
from .league import League  # noqa: F401
from .quiz import Quiz, QuizCategory, QuizTeam  # noqa: F401
from .score import ScoreEntry  # noqa: F401
from .help import HelpType, HelpUsage  # noqa: F401
from .share import ShareToken  # noqa: F401
from .audit import AuditLog  # noqa: F401
from .question import Question, QuestionOption  # noqa: F401
from .settings import OrgSettings  # noqa: F401
