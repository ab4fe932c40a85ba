"""
Provider interface: the boundary to the hosted database and object storage.

A provider exposes equality-filtered CRUD on named tables plus a small
object-storage API. Row-level authorization is the provider's job; callers
pass the owning user id as a filter and never check ownership themselves.
"""
from abc import ABC, abstractmethod
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

IMAGE_BUCKET = "company-images"


def encode_value(value: Any) -> Any:
    """Convert a Python value into what a provider stores."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def encode_fields(fields: Mapping[str, Any]) -> Dict[str, Any]:
    return {key: encode_value(value) for key, value in fields.items()}


class Provider(ABC):
    """CRUD and storage operations against named record collections."""

    @abstractmethod
    def select(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        ascending: bool = True,
    ) -> List[Dict[str, Any]]:
        """Return rows whose columns equal every filter value."""

    @abstractmethod
    def insert(self, table: str, row: Mapping[str, Any]) -> Dict[str, Any]:
        """Insert one row and return it as stored."""

    @abstractmethod
    def update(
        self, table: str, filters: Mapping[str, Any], fields: Mapping[str, Any]
    ) -> List[Dict[str, Any]]:
        """Update matching rows and return them."""

    @abstractmethod
    def delete(self, table: str, filters: Mapping[str, Any]) -> None:
        """Delete matching rows."""

    @abstractmethod
    def upload(self, bucket: str, path: str, data: bytes, content_type: str) -> None:
        """Store an object; fails if the path already exists."""

    @abstractmethod
    def remove(self, bucket: str, paths: Iterable[str]) -> None:
        """Remove objects; missing paths are ignored."""

    @abstractmethod
    def public_url(self, bucket: str, path: str) -> str:
        """URL (or local path) under which an object can be displayed."""
