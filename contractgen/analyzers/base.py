"""Base classes for export extraction strategies."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import List


class ExportExtractor(ABC):
    """Contract for best-effort extractors of a module's public names."""

    @abstractmethod
    def supports(self, ecosystem: str) -> bool:
        """Return True when this extractor applies to the detected ecosystem."""

    @abstractmethod
    def extract(self, directory: Path) -> List[str]:
        """Return exported names in first-seen order; never raise on malformed input."""
