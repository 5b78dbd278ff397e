from __future__ import annotations

from io import BytesIO
from pathlib import Path

from PIL import Image as PILImage


class Image:
    """Raw PNG bytes of a screenshot."""

    def __init__(self, data: bytes) -> None:
        self.data = data

    def __len__(self) -> int:
        return len(self.data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Image):
            return NotImplemented
        return self.data == other.data

    def __repr__(self) -> str:
        return f"Image(bytes={len(self.data)})"

    def to_pil(self) -> PILImage.Image:
        return PILImage.open(BytesIO(self.data))

    @property
    def size(self) -> tuple[int, int]:
        with self.to_pil() as image:
            return image.size

    def save(self, path: str | Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.data)
        return path
