import os
import random
from typing import List

IMAGE_EXTENSIONS = ('.jpg', '.jpeg', '.png', '.gif', '.webp')


class ImagePool:
    """Selectable image identifiers scanned from a directory.

    Identifiers are URL paths (``/images/<file>``) so clients can load them
    directly. The pool is refreshed periodically; callers re-check
    :attr:`usable` before every draw.
    """

    def __init__(self, directory: str, url_prefix: str = '/images', minimum: int = 3,
                 logger=None, rng=None):
        self.directory = directory
        self.url_prefix = url_prefix.rstrip('/')
        self.minimum = minimum
        self.logger = logger
        self._rng = rng or random.Random()
        self._images: List[str] = []

    @property
    def count(self) -> int:
        return len(self._images)

    @property
    def usable(self) -> bool:
        return len(self._images) >= self.minimum

    def identifiers(self) -> List[str]:
        return list(self._images)

    def set_images(self, images: List[str]) -> None:
        self._images = list(images)

    def refresh(self) -> int:
        """Rescan the directory. Returns the number of images found."""
        try:
            if not os.path.isdir(self.directory):
                os.makedirs(self.directory, exist_ok=True)
                self._log('info', f"[images] created directory {self.directory}; add images to play")
            files = sorted(
                name for name in os.listdir(self.directory)
                if os.path.splitext(name)[1].lower() in IMAGE_EXTENSIONS
            )
            self._images = [f"{self.url_prefix}/{name}" for name in files]
        except OSError as exc:
            self._log('error', f"[images] scan of {self.directory} failed: {exc}")
            self._images = []

        self._log('info', f"[images] loaded {len(self._images)} images from {self.directory}")
        if not self.usable:
            self._log(
                'warning',
                f"[images] need at least {self.minimum} images to play, currently have {len(self._images)}",
            )
        return len(self._images)

    def draw(self, n: int = 3) -> List[str]:
        """Pick ``n`` identifiers independently and uniformly; repeats allowed."""
        if not self.usable:
            return []
        return [self._rng.choice(self._images) for _ in range(n)]

    def _log(self, level: str, message: str) -> None:
        if self.logger is not None:
            getattr(self.logger, level)(message)
