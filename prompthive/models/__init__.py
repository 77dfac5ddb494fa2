from .user import User  # noqa: F401
from .collection import Collection  # noqa: F401
from .prompt import Attachment, Prompt, PromptVersion, prompt_collections, prompt_relations, prompt_tags  # noqa: F401
from .tag import Tag  # noqa: F401
from .favorite import Favorite  # noqa: F401
from .settings import GlobalConfiguration, UserSettings  # noqa: F401
from .workflow import Workflow, WorkflowStep  # noqa: F401
from .technical_id import TechnicalIdSequence  # noqa: F401
from .audit_log import AuditLog  # noqa: F401
