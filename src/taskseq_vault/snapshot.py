import contextlib
import copy
import datetime
import logging
import os
import xml.etree.ElementTree as ET
from pathlib import Path

from .constants import APP_NAME, EXPORT_NAME_TEMPLATE, EXPORTS_DIR, SNAPSHOT_SUFFIX
from .errors import CompareFailed, WriteFailed
from .provider import Artifact, ProviderError, TaskSequenceProvider

logger = logging.getLogger(APP_NAME)

_TICK = datetime.timedelta(microseconds=100)


def snapshot_path(repo_root: Path, name: str) -> Path:
    """Returns where the saved definition of `name` lives in the working copy."""
    return repo_root / f"{name}{SNAPSHOT_SUFFIX}"


def canonical_form(element: ET.Element) -> str:
    """Serializes an element as canonical XML (C14N 2.0).

    Attribute order is normalized and whitespace-only text between elements is
    dropped, so two documents that differ only in formatting compare equal.
    Text with any non-whitespace content is kept verbatim, surrounding spaces
    included.
    """
    normalized = copy.deepcopy(element)
    for node in normalized.iter():
        if node.text is not None and not node.text.strip():
            node.text = None
        if node.tail is not None and not node.tail.strip():
            node.tail = None
    return ET.canonicalize(ET.tostring(normalized, encoding="unicode"))


def load_canonical_snapshot(path: Path) -> str | None:
    """Reads the saved snapshot in canonical form.

    Returns:
        str | None: The canonical XML, or None if no snapshot exists yet.

    Raises:
        CompareFailed: If the snapshot exists but cannot be read or parsed.
    """
    if not path.exists():
        return None
    try:
        root = ET.parse(path).getroot()
    except (ET.ParseError, OSError) as e:
        raise CompareFailed(f"Could not read snapshot {path}: {e}") from e
    return canonical_form(root)


def has_changed(definition: ET.Element, path: Path) -> bool:
    """Decides whether `definition` differs structurally from the snapshot at `path`.

    A missing snapshot always counts as a change.
    """
    previous = load_canonical_snapshot(path)
    if previous is None:
        logger.info(f"No snapshot at {path}; treating as changed.")
        return True
    return canonical_form(definition) != previous


def write_snapshot(path: Path, definition: ET.Element) -> None:
    """Overwrites the snapshot with a pretty-printed copy of `definition`.

    The document is written to a temporary file first and swapped into place.
    Inside a working copy the temporary file lives under `.git`, so a leftover
    one is never picked up as an untracked file.

    Raises:
        WriteFailed: If the file cannot be written.
    """
    tree = ET.ElementTree(copy.deepcopy(definition))
    ET.indent(tree, space="  ")
    git_dir = path.parent / ".git"
    tmp_dir = git_dir if git_dir.is_dir() else path.parent
    tmp_file = tmp_dir / f"{path.name}.tmp"

    try:
        with open(tmp_file, "wb") as f:
            tree.write(f, encoding="utf-8", xml_declaration=True)
            f.write(b"\n")
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_file, path)
    except OSError as e:
        with contextlib.suppress(OSError):
            tmp_file.unlink(missing_ok=True)
        raise WriteFailed(f"Could not write snapshot {path}: {e}") from e


def file_datetime(moment: datetime.datetime) -> str:
    """Formats a moment like PowerShell's `FileDateTime` (e.g. 20261018T1432059871)."""
    return moment.strftime("%Y%m%dT%H%M%S") + f"{moment.microsecond // 100:04d}"


def archive_path(exports_dir: Path, name: str, moment: datetime.datetime) -> Path:
    """Returns a not-yet-used archive path for `name`, advancing past taken stamps."""
    while True:
        candidate = exports_dir / EXPORT_NAME_TEMPLATE.format(
            name=name, stamp=file_datetime(moment)
        )
        if not candidate.exists():
            return candidate
        moment += _TICK


def write_export(
    provider: TaskSequenceProvider,
    repo_root: Path,
    name: str,
    moment: datetime.datetime,
) -> Path:
    """Exports `name` into the working copy's exports directory.

    Returns:
        Path: The archive that was written.

    Raises:
        WriteFailed: If the directory cannot be created or the export fails.
    """
    exports_dir = repo_root / EXPORTS_DIR
    try:
        exports_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise WriteFailed(f"Could not create {exports_dir}: {e}") from e

    destination = archive_path(exports_dir, name, moment)
    try:
        provider.export(name, destination)
    except ProviderError as e:
        raise WriteFailed(f"Export of '{name}' failed: {e}") from e
    return destination


def save(
    provider: TaskSequenceProvider,
    repo_root: Path,
    artifact: Artifact,
    moment: datetime.datetime,
) -> list[Path]:
    """Writes a fresh export archive and the snapshot for a changed artifact.

    The snapshot is the change baseline, so it is only replaced once the export
    has succeeded. A failed export leaves the old snapshot and the next run
    detects the change again.

    Returns:
        list[Path]: The snapshot and archive paths, in that order.
    """
    artifact.export_path = write_export(provider, repo_root, artifact.name, moment)
    logger.info(f"Export written: {artifact.export_path}")

    target = snapshot_path(repo_root, artifact.name)
    write_snapshot(target, artifact.definition)
    logger.info(f"Snapshot written: {target}")
    return [target, artifact.export_path]
