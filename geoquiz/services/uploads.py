"""Image store for uploaded quiz photos.

Files are written under the configured image root with generated names; the
ledger only ever sees the relative reference ``images/<filename>``.
"""
import logging
import random
import time
from pathlib import Path
from typing import Sequence

from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool

logger = logging.getLogger(__name__)

IMAGE_URL_PREFIX = "images"


class ImageStore:
    def __init__(self, root: str | Path):
        self.root = Path(root)

    def ensure_root(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    def _new_filename(self, original: str | None) -> str:
        ext = Path(original or "").suffix.lower()
        while True:
            name = f"photo_{int(time.time() * 1000)}_{random.randint(0, 9999)}{ext}"
            if not (self.root / name).exists():
                return name

    async def save(self, upload: UploadFile) -> str:
        self.ensure_root()
        filename = self._new_filename(upload.filename)
        data = await upload.read()
        await run_in_threadpool((self.root / filename).write_bytes, data)
        return f"{IMAGE_URL_PREFIX}/{filename}"

    async def save_all(self, uploads: Sequence[UploadFile]) -> list[str]:
        """Store files in upload order; the returned references keep that order."""
        saved: list[str] = []
        try:
            for upload in uploads:
                saved.append(await self.save(upload))
        except OSError:
            self.discard(saved)
            raise
        return saved

    def discard(self, references: Sequence[str]) -> None:
        for ref in references:
            path = self.root / Path(ref).name
            try:
                path.unlink(missing_ok=True)
            except OSError as exc:
                logger.warning("Could not remove %s: %s", path, exc)
