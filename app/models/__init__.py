# Import all models so Alembic can discover them via Base.metadata
from .category import Category
from .chapter import Chapter
from .chapter_content import ChapterContent
from .chapter_progress import ChapterProgress
from .learning_module import LearningModule
from .module_registration import ModuleRegistration
from .user_profile import UserProfile

__all__ = [
    "Category",
    "Chapter",
    "ChapterContent",
    "ChapterProgress",
    "LearningModule",
    "ModuleRegistration",
    "UserProfile",
]
