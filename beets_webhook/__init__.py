"""Import webhook: runs ``beet import`` and triggers a Navidrome rescan.

A POST to ``/task/start`` starts the import in the background. Only one
import runs at a time; concurrent requests are rejected with 409.
"""

__version__ = "1.0.0"

from .config import ImportConfig
from .importer import ImportRunner

__all__ = ["ImportConfig", "ImportRunner"]
