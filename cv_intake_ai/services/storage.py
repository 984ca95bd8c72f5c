"""Object storage for raw uploaded files, addressed by content key."""

from abc import ABC, abstractmethod
from typing import Dict, Tuple

from cv_intake_ai.cv_pipeline.errors import StorageError


class ObjectStorage(ABC):
    @abstractmethod
    async def put(self, key: str, data: bytes, content_type: str) -> None:
        ...

    @abstractmethod
    async def get(self, key: str) -> bytes:
        """Return stored bytes; raise StorageError if the key does not exist."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        ...


class InMemoryObjectStorage(ObjectStorage):
    """Process-local storage, used by the default bootstrap and tests."""

    def __init__(self) -> None:
        self._objects: Dict[str, Tuple[bytes, str]] = {}

    async def put(self, key: str, data: bytes, content_type: str) -> None:
        self._objects[key] = (bytes(data), content_type)

    async def get(self, key: str) -> bytes:
        try:
            return self._objects[key][0]
        except KeyError:
            raise StorageError(f"Object not found: {key}") from None

    async def delete(self, key: str) -> None:
        self._objects.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._objects
