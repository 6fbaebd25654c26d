from pathlib import Path
from typing import Iterable

from ..core.ports import StorageStrategy


class FsStorage(StorageStrategy):
    def __init__(self, root: Path):
        self.root = Path(root)

    def _path(self, id: str) -> Path:
        return self.root / f"{id}.md"

    def read_raw(self, id: str) -> str | None:
        p = self._path(id)
        return p.read_text(encoding="utf-8") if p.exists() else None

    def write_raw(self, id: str, contents: str) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        # Atomic write using temp file
        tmp_path = self._path(id).with_suffix(".md.tmp")
        try:
            tmp_path.write_text(contents, encoding="utf-8")
            tmp_path.replace(self._path(id))
        except Exception:
            if tmp_path.exists():
                tmp_path.unlink()
            raise

    def delete_raw(self, id: str) -> None:
        p = self._path(id)
        if p.exists():
            p.unlink()

    def list_all_ids(self) -> Iterable[str]:
        if not self.root.exists():
            return []
        return sorted(p.stem for p in self.root.glob("*.md"))
