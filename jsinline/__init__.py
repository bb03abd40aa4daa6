"""
jsinline - expand ``%inline('module').fn(args);`` macros in JavaScript source
by splicing in the body of the referenced exported function.
"""

from jsinline.core.config import Settings, get_settings
from jsinline.macros import FileSystemContext, InlineEngine, transform

__version__ = "0.1.0"

__all__ = [
    "Settings",
    "get_settings",
    "FileSystemContext",
    "InlineEngine",
    "transform",
    "__version__",
]
