# core/storage/image_store.py
import datetime
import io
from pathlib import Path
from typing import Callable, List, Optional

from config import config
from core.errors import EncodeFailure, StorageUnavailable
from utils.data_models import NormalizedImage, StoredArtifact
from utils.logger import setup_logger

logger = setup_logger(__name__)

FILENAME_PREFIX = "screenshot_"
TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
IMAGE_EXTENSION = "png"


def artifact_name(captured_at: datetime.datetime) -> str:
    """
    Name for a capture taken at `captured_at`.

    Whole-second precision: two captures within the same second share a name
    and the later one overwrites the earlier.
    """
    return f"{FILENAME_PREFIX}{captured_at.strftime(TIMESTAMP_FORMAT)}.{IMAGE_EXTENSION}"


class ImageStore:
    """
    Flat directory of PNG screenshots

    - files named screenshot_<YYYYMMDD_HHMMSS>.png from the local wall clock
    - directory created on the first save
    - no index file, discovery is a directory listing
    - never deletes anything
    """

    def __init__(
        self,
        storage_dir: str = None,
        clock: Optional[Callable[[], datetime.datetime]] = None,
        compress_level: int = None
    ):
        self.storage_dir = Path(storage_dir) if storage_dir else config.SCREENSHOT_DIR
        self.clock = clock or datetime.datetime.now
        self.compress_level = compress_level if compress_level is not None else config.PNG_COMPRESS_LEVEL
        logger.info(f"ImageStore initialized at: {self.storage_dir}")

    def _ensure_dir(self) -> None:
        try:
            self.storage_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageUnavailable(f"Cannot create {self.storage_dir}: {e}") from e
        if not self.storage_dir.is_dir():
            raise StorageUnavailable(f"{self.storage_dir} is not a directory")

    def _encode(self, image: NormalizedImage) -> bytes:
        try:
            pil_image = image.to_pil()
            out = io.BytesIO()
            pil_image.save(out, format="PNG", compress_level=self.compress_level)
        except (ValueError, OSError) as e:
            raise EncodeFailure(f"PNG encoding failed: {e}") from e
        return out.getvalue()

    def save(self, image: NormalizedImage) -> StoredArtifact:
        """
        Encode `image` as PNG and write it under a timestamped name

        Raises:
            EncodeFailure: the image could not be encoded
            StorageUnavailable: the directory or file could not be written
        """
        captured_at = self.clock()
        data = self._encode(image)

        self._ensure_dir()
        name = artifact_name(captured_at)
        path = self.storage_dir / name
        if path.exists():
            logger.warning(f"Overwriting {name} (capture within the same second)")
        try:
            path.write_bytes(data)
        except OSError as e:
            raise StorageUnavailable(f"Cannot write {path}: {e}") from e

        artifact = StoredArtifact(
            name=name,
            path=path.resolve(),
            captured_at=captured_at,
            width=image.width,
            height=image.height,
            size_bytes=len(data),
        )
        logger.info(f"Screenshot saved at: {artifact.path}")
        return artifact

    def list_artifacts(self) -> List[Path]:
        """Stored screenshots, oldest first"""
        if not self.storage_dir.is_dir():
            return []
        return sorted(
            p for p in self.storage_dir.glob(f"{FILENAME_PREFIX}*.{IMAGE_EXTENSION}")
            if p.is_file()
        )

    def get_stats(self) -> dict:
        artifacts = self.list_artifacts()
        return {
            "total_artifacts": len(artifacts),
            "total_bytes": sum(p.stat().st_size for p in artifacts),
            "storage_path": str(self.storage_dir),
        }
