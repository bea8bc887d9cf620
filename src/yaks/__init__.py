"""
Yaks - hierarchical task tracking shared through a hidden git ref.

Yaks are kept as a plain directory tree and synchronized between
collaborators with a fetch-merge-push cycle on ``refs/notes/yaks``.
"""

__version__ = "0.1.0"

# Re-export core models for convenience
from yaks.core.config.models import YaksConfig
from yaks.core.yaks.models import Yak, YakCollection

__all__ = ["YaksConfig", "Yak", "YakCollection", "__version__"]
