"""Object-store persistence of product documents.

Documents are JSON, addressed by a slash-separated key derived from the
product type, chip coordinates, tile, and date.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from coverproducts.exceptions import StorageError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProductPath:
    """Location of a product document in the store.

    Args:
        name: File name of the document.
        key: Full slash-separated object key, ending in ``name``.

    Example:
        >>> product_path("cover", 100, 200, "h01v02", "2001-07-01").key
        'cover/h01v02/100/200/cover-h01v02-100-200-2001-07-01.json'
    """

    name: str
    key: str


def product_path(
    product: str, cx: int, cy: int, tile: str, date: str
) -> ProductPath:
    """Build the store path of a per-date product document."""
    name = f"{product}-{tile}-{cx}-{cy}-{date}.json"
    return ProductPath(name=name, key=f"{product}/{tile}/{cx}/{cy}/{name}")


class ObjectStore(ABC):
    """Key/document store for product output."""

    @abstractmethod
    def put(self, path: ProductPath, payload: Any) -> None:
        """Store *payload* as a JSON document under *path*.

        Raises:
            StorageError: If the document cannot be written.
        """
        ...

    @abstractmethod
    def get(self, path: ProductPath) -> Any:
        """Return the document stored under *path*.

        Raises:
            StorageError: If the document is missing or unreadable.
        """
        ...


class FileSystemStore(ObjectStore):
    """Object store backed by a local directory.

    Writes are atomic: the document is written to a temporary file that
    then replaces the target.

    Args:
        root: Directory holding the stored objects.

    Example:
        >>> store = FileSystemStore("/tmp/cover-store")
        >>> store.put(product_path("cover", 1, 2, "h01v02", "2001-07-01"), [])
    """

    def __init__(self, root: Path | str) -> None:
        self._root = Path(root).expanduser()

    @property
    def root(self) -> Path:
        return self._root

    def _file(self, path: ProductPath) -> Path:
        return self._root.joinpath(*path.key.split("/"))

    def put(self, path: ProductPath, payload: Any) -> None:
        target = self._file(path)
        try:
            body = json.dumps(payload, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise StorageError(
                what=f"Cannot serialize {path.name}",
                cause=f"{type(exc).__name__}: {exc}",
                fix="Ensure product records hold only JSON types",
            ) from exc

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = target.with_suffix(".tmp")
            tmp_path.write_text(body, encoding="utf-8")
            tmp_path.replace(target)
        except OSError as exc:
            raise StorageError(
                what=f"Cannot write {path.name}",
                cause=f"{type(exc).__name__}: {exc.strerror or exc}",
                fix=f"Check that {self._root} is writable",
            ) from exc

        logger.debug("Stored %s (%d bytes)", path.key, len(body))

    def get(self, path: ProductPath) -> Any:
        target = self._file(path)
        try:
            text = target.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise StorageError(
                what=f"Cannot read {path.name}",
                cause=f"Object not found: {path.key}",
                fix="Generate the chip before reading its products",
            ) from None
        except OSError as exc:
            raise StorageError(
                what=f"Cannot read {path.name}",
                cause=f"{type(exc).__name__}: {exc.strerror or exc}",
                fix=f"Check permissions on {self._root}",
            ) from exc

        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise StorageError(
                what=f"Corrupt document {path.name}",
                cause=f"JSON parse error: {exc}",
                fix="Regenerate the chip",
            ) from exc
