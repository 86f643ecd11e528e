import posixpath
import re
from typing import Dict, Iterable, List

from fastapi import UploadFile

from amplifier.models import FileWithContent

ROOT_FOLDER = "Root"
DEFAULT_CORRECTED_NAME = "corrected_code.txt"

_EXTENSION_RE = re.compile(r"\.[^/.]+$")


def file_extension(name: str) -> str:
    """Text after the last dot; a name without a dot is returned whole."""
    return name.rsplit(".", 1)[-1]


def _normalize_path(path: str) -> str:
    return path.replace("\\", "/")


def make_file(path: str, content: str) -> FileWithContent:
    path = _normalize_path(path)
    name = posixpath.basename(path) or path
    return FileWithContent(
        name=name,
        path=path,
        content=content,
        extension=file_extension(name),
    )


async def read_upload(upload: UploadFile) -> FileWithContent:
    """Turn a multipart upload into a FileWithContent.

    Browsers send the folder-relative path as the part's filename when a
    directory is dropped, so the path keeps it and the name is its basename.
    """
    raw = await upload.read()
    path = upload.filename or "untitled"
    return make_file(path, raw.decode("utf-8", errors="replace"))


def group_by_folder(files: Iterable[FileWithContent]) -> Dict[str, List[FileWithContent]]:
    folders: Dict[str, List[FileWithContent]] = {}
    for f in files:
        folder = posixpath.dirname(_normalize_path(f.path)) or ROOT_FOLDER
        folders.setdefault(folder, []).append(f)
    return folders


def corrected_file_name(path: str) -> str:
    """
    Download name for a corrected file.

    src/app.py -> app_corrected.py, Makefile -> Makefile
    """
    corrected = _EXTENSION_RE.sub(lambda m: f"_corrected{m.group(0)}", _normalize_path(path))
    return posixpath.basename(corrected) or DEFAULT_CORRECTED_NAME
