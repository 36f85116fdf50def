"""Whole-file reads and atomic overwrites for target files."""

import os
import shutil
import tempfile
from pathlib import Path

from refactor_assistant.agents.exceptions import FileAccessError

ENCODING = "utf-8"


class FileMutator:
    """Reads and rewrites target files as UTF-8 text.

    Newline translation is disabled in both directions so a restored file is
    byte-for-byte identical to its snapshot.
    """

    def snapshot(self, path: str) -> str:
        """Read the pre-transformation content of ``path``."""
        return self._read(path, "snapshot")

    def read_back(self, path: str) -> str:
        """Re-read ``path`` after a write."""
        return self._read(path, "read back")

    def write(self, path: str, content: str) -> None:
        """Replace the whole content of ``path``.

        The new content goes to a temp file beside the resolved target that
        is then renamed over it, so readers never observe a partial write.
        Symlinks are written through and stay links.

        Raises:
            FileAccessError: If the temp file cannot be written or renamed.
        """
        target = Path(os.path.realpath(path))
        tmp_name: str | None = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding=ENCODING,
                newline="",
                dir=target.parent,
                prefix=f".{target.name}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                tmp_name = handle.name
                handle.write(content)
            if target.exists():
                shutil.copymode(target, tmp_name)
            os.replace(tmp_name, target)
            tmp_name = None
        except OSError as e:
            raise FileAccessError(f"Failed to write file '{path}': {e}") from e
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)

    def _read(self, path: str, action: str) -> str:
        try:
            with open(path, "r", encoding=ENCODING, newline="") as handle:
                return handle.read()
        except (OSError, UnicodeDecodeError) as e:
            raise FileAccessError(f"Failed to {action} file '{path}': {e}") from e
