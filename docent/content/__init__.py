"""Museum content: types, backend client and payload normalization."""

from .client import ContentRepositoryClient
from .fallback import LocalDataset
from .types import Item, ProbeResult, QuizQuestion, Theme

__all__ = [
    "ContentRepositoryClient",
    "LocalDataset",
    "Item",
    "ProbeResult",
    "QuizQuestion",
    "Theme",
]
