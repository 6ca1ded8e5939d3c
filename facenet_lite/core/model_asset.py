"""Read-only memory mapping of bundled model files."""
from __future__ import annotations

import mmap
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from facenet_lite.core.exceptions import ModelLoadError
from facenet_lite.core.logger import get_logger

logger = get_logger("model_asset")


@dataclass(frozen=True)
class ModelAsset:
    """Location of a model inside a file.

    Attributes:
        path: File containing the model.
        start_offset: Byte offset where the model starts.
        declared_length: Model length in bytes, or None for "to end of file".
    """

    path: Path
    start_offset: int = 0
    declared_length: Optional[int] = None


class MappedModel:
    """Read-only mapping over the declared byte range of a model asset."""

    def __init__(self, mapping: mmap.mmap, skip: int, length: int) -> None:
        self._mapping: Optional[mmap.mmap] = mapping
        self._skip = skip
        self.length = length

    @property
    def closed(self) -> bool:
        return self._mapping is None

    def content(self) -> bytes:
        """Return the model bytes.

        Raises:
            ModelLoadError: If the mapping was already closed.
        """
        if self._mapping is None:
            raise ModelLoadError("model mapping is closed")
        return self._mapping[self._skip : self._skip + self.length]

    def close(self) -> None:
        if self._mapping is not None:
            self._mapping.close()
            self._mapping = None

    def __enter__(self) -> "MappedModel":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def map_model_asset(asset: ModelAsset) -> MappedModel:
    """Map a model asset into memory read-only.

    Args:
        asset: Model location.

    Returns:
        MappedModel over the declared byte range.

    Raises:
        ModelLoadError: If the file is missing, unreadable, or the declared
            range is empty or extends past the end of the file.
    """
    path = Path(asset.path)
    if asset.start_offset < 0:
        raise ModelLoadError(f"Negative start offset for model {path}")

    try:
        with open(path, "rb") as fh:
            file_size = os.fstat(fh.fileno()).st_size
            length = (
                asset.declared_length
                if asset.declared_length is not None
                else file_size - asset.start_offset
            )
            if length <= 0:
                raise ModelLoadError(f"Model asset is empty: {path}")
            if asset.start_offset + length > file_size:
                raise ModelLoadError(
                    f"Model range {asset.start_offset}+{length} exceeds file size "
                    f"{file_size}: {path}"
                )

            # mmap offsets must be multiples of the allocation granularity
            skip = asset.start_offset % mmap.ALLOCATIONGRANULARITY
            aligned = asset.start_offset - skip
            mapping = mmap.mmap(
                fh.fileno(), skip + length, access=mmap.ACCESS_READ, offset=aligned
            )
    except FileNotFoundError as e:
        raise ModelLoadError(f"Model file not found: {path}") from e
    except OSError as e:
        raise ModelLoadError(f"Cannot read model file {path}: {e}") from e

    logger.debug(f"Mapped {length} bytes of {path} at offset {asset.start_offset}")
    return MappedModel(mapping, skip, length)
