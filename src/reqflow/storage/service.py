"""ローカルファイルシステムベースのストレージサービス。"""

import os
import shutil
import tempfile
from pathlib import Path, PurePath

from reqflow.models.errors import StorageError


class StorageService:
    """ローカルファイルシステムを利用したデータ永続化層。

    パスは全てデータディレクトリ（通常は ``<root>/requirements``）からの相対パスで受け取る。
    「存在しない」は条件付き読み込みでのみNone/Falseとして扱い、
    それ以外のOSErrorはStorageErrorとして呼び出し元に伝播させる。
    """

    def __init__(self, data_dir: Path) -> None:
        self._data_dir = data_dir

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _resolve(self, relative: str | PurePath) -> Path:
        # ディレクトリトラバーサル防止
        rel = Path(relative)
        if rel.is_absolute() or ".." in rel.parts:
            raise StorageError(f"Invalid path: {relative}")
        return self._data_dir / rel

    async def ensure_dir(self, relative: str | PurePath = ".") -> Path:
        """ディレクトリを（親も含めて）作成する。"""
        path = self._resolve(relative)
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to create directory {path}: {e}") from e
        return path

    async def exists(self, relative: str | PurePath) -> bool:
        return self._resolve(relative).exists()

    async def read_text_or_none(self, relative: str | PurePath) -> str | None:
        """テキストを読み込む。ファイルが存在しない場合はNoneを返す。"""
        path = self._resolve(relative)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Failed to read {path}: {e}") from e

    async def write_text(self, relative: str | PurePath, content: str) -> None:
        """テキストをアトミックに書き込む。

        一時ファイルに書き込んでから置き換えるため、失敗時は既存の内容が残る。
        """
        path = self._resolve(relative)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(content)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}") from e

    async def append_text(self, relative: str | PurePath, content: str, *, header: str = "") -> None:
        """テキストを追記する。ファイルが無ければheaderから書き始める。"""
        existing = await self.read_text_or_none(relative)
        await self.write_text(relative, (header if existing is None else existing) + content)

    async def read_dir(self, relative: str | PurePath = ".") -> list[str]:
        """ディレクトリ直下のエントリ名を名前順で返す。存在しない場合は空リスト。"""
        path = self._resolve(relative)
        try:
            return sorted(entry.name for entry in path.iterdir())
        except FileNotFoundError:
            return []
        except OSError as e:
            raise StorageError(f"Failed to list {path}: {e}") from e

    async def is_dir(self, relative: str | PurePath) -> bool:
        return self._resolve(relative).is_dir()

    async def remove_file(self, relative: str | PurePath) -> None:
        """ファイルを削除する。存在しない場合は何もしない。"""
        path = self._resolve(relative)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to remove {path}: {e}") from e

    async def remove_recursive(self, relative: str | PurePath) -> None:
        """ディレクトリを再帰的に削除する。存在しない場合は何もしない。"""
        path = self._resolve(relative)
        if path == self._data_dir:
            raise StorageError(f"Refusing to remove data directory: {path}")
        try:
            shutil.rmtree(path)
        except FileNotFoundError:
            return
        except OSError as e:
            raise StorageError(f"Failed to remove {path}: {e}") from e
