"""On-device JSON document persistence

Every aggregate lives in its own JSON file under DATA_PATH:
- Whole document read on load
- Whole document written atomically on save (temp file + os.replace)
- Missing or undecodable file means "no data yet" and yields a seeded default
"""
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from src.config import DATA_PATH
from src.exceptions import wrap_external_exception

logger = logging.getLogger(__name__)

T = TypeVar('T')


class JsonDocumentStore:
    """Read and write whole JSON documents in a data directory"""

    def __init__(self, data_path: Path = DATA_PATH):
        self.data_path = Path(data_path)
        self._adapters: dict[Any, TypeAdapter] = {}

    def path_for(self, filename: str) -> Path:
        return self.data_path / filename

    def _adapter(self, schema: Any) -> TypeAdapter:
        adapter = self._adapters.get(schema)
        if adapter is None:
            adapter = TypeAdapter(schema)
            self._adapters[schema] = adapter
        return adapter

    def load(
        self,
        filename: str,
        schema: Any,
        default_factory: Callable[[], T],
        persist_default: bool = False
    ) -> T:
        """
        Load and validate a document

        Args:
            filename: File name inside the data directory
            schema: Pydantic model or typing construct (e.g. list[CheckIn])
            default_factory: Builds the seeded value when nothing usable is on disk
            persist_default: Write the seeded value back immediately

        Returns:
            The decoded document, or the seeded default
        """
        path = self.path_for(filename)
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            logger.info(f"No {filename} yet, starting from defaults")
            return self._seed(filename, schema, default_factory, persist_default)
        except OSError as e:
            logger.error(f"Failed to read {path}: {e}")
            return self._seed(filename, schema, default_factory, persist_default)

        try:
            value = self._adapter(schema).validate_json(raw)
        except (PydanticValidationError, ValueError) as e:
            logger.error(f"Failed to decode {filename}, replacing with defaults: {e}")
            return self._seed(filename, schema, default_factory, persist_default)

        logger.debug(f"Loaded {filename}")
        return value

    def save(self, filename: str, value: Any, schema: Any) -> bool:
        """
        Atomically replace a document on disk

        Returns:
            True on success. Failures are logged and reported as False; they
            never propagate to the caller.
        """
        path = self.path_for(filename)
        try:
            payload = self._adapter(schema).dump_json(value, indent=2)
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{filename}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "wb") as tmp:
                    tmp.write(payload)
                    tmp.flush()
                    os.fsync(tmp.fileno())
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            error = wrap_external_exception(e, operation=f"save {filename}")
            logger.warning(f"Keeping previous {filename} (request {error.request_id}): {error.user_message}")
            return False

        logger.debug(f"Saved {filename}")
        return True

    def delete(self, filename: str) -> None:
        self.path_for(filename).unlink(missing_ok=True)

    def _seed(
        self,
        filename: str,
        schema: Any,
        default_factory: Callable[[], T],
        persist_default: bool
    ) -> T:
        value = default_factory()
        if persist_default:
            self.save(filename, value, schema)
        return value


def ensure_data_dir(data_path: Optional[Path] = None) -> Path:
    """Create the data directory if missing"""
    path = Path(data_path or DATA_PATH)
    path.mkdir(parents=True, exist_ok=True)
    return path
