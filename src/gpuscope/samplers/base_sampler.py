from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class BaseSampler(ABC):
    """
    Abstract base class for telemetry sources.

    A sampler is polled once per monitor tick and returns one raw
    telemetry record in wire format (camelCase keys), or None when no
    reading is available. Records are validated by the caller; samplers
    never touch the history buffer.
    """

    def __init__(self, sampler_name: str) -> None:
        self.sampler_name = sampler_name

    @abstractmethod
    def sample(self) -> Optional[Dict[str, Any]]:
        raise NotImplementedError("Must be implemented by subclasses.")
