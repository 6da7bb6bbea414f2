"""
Core logic for codecollector package.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Dict, FrozenSet, Iterable, List, Optional, Set, Tuple, Union

import pathspec

if TYPE_CHECKING:
    from .clipboard import ClipboardSink

# Exceptions
class CollectorError(Exception): ...
class NotADirectory(CollectorError): ...
class ConfigFileError(CollectorError): ...
class ClipboardUnavailable(CollectorError): ...

# Warning kinds
UNREADABLE_SUBTREE = "unreadable-subtree"
UNREADABLE_FILE = "unreadable-file"
NON_TEXT_FILE = "non-text-file"

DIR = "dir"
FILE = "file"

FilterSpec = FrozenSet[str]
PathLike = Union[str, os.PathLike]

# Defaults & helpers
DEFAULT_EXCLUDED_DIRS: List[str] = [
    "node_modules",
    "target",
    "build",
    "dist",
    "venv",
    "env",
    ".venv",
    ".env",
    ".git",
    "__pycache__",
]

# (open, close) pairs; close is empty for line comments
_COMMENT_STYLES: Dict[str, Tuple[str, str]] = {}
for _ext in (
    "py", "sh", "bash", "zsh", "yaml", "yml", "toml", "ini", "cfg", "conf",
    "rb", "pl", "r", "php", "ps1", "makefile", "dockerfile", "cmake",
):
    _COMMENT_STYLES[_ext] = ("#", "")
for _ext in (
    "rs", "js", "jsx", "ts", "tsx", "mjs", "cjs", "c", "h", "cc", "cpp", "hpp",
    "java", "cs", "go", "swift", "kt", "kts", "scala", "dart",
):
    _COMMENT_STYLES[_ext] = ("//", "")
for _ext in ("html", "htm", "xml", "xhtml", "svg", "vue"):
    _COMMENT_STYLES[_ext] = ("<!--", "-->")
for _ext in ("css", "scss", "less"):
    _COMMENT_STYLES[_ext] = ("/*", "*/")
del _ext

DEFAULT_COMMENT_STYLE: Tuple[str, str] = ("#", "")


def _extension(path: PathLike) -> str:
    return Path(path).suffix.lower().lstrip(".")


def comment_style(path: PathLike) -> Tuple[str, str]:
    """Return the ``(open, close)`` comment markers used for *path*'s header."""
    p = Path(path)
    key = _extension(p) or p.name.lower()
    return _COMMENT_STYLES.get(key, DEFAULT_COMMENT_STYLE)


def header_line(rel_path: str) -> str:
    opener, closer = comment_style(rel_path)
    if closer:
        return f"{opener} {rel_path} {closer}"
    return f"{opener} {rel_path}"


# Data model
@dataclass(frozen=True)
class FileEntry:
    parts: Tuple[str, ...]
    kind: str

    @property
    def rel_path(self) -> str:
        return "/".join(self.parts)

    @property
    def name(self) -> str:
        return self.parts[-1]

    @property
    def depth(self) -> int:
        return len(self.parts) - 1

    @property
    def is_dir(self) -> bool:
        return self.kind == DIR


@dataclass(frozen=True)
class CollectionWarning:
    kind: str
    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.message}: {self.path}"


@dataclass
class CollectedTree:
    """Depth-first, name-sorted entries; directories precede their contents."""

    entries: List[FileEntry] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def files(self) -> List[FileEntry]:
        return [e for e in self.entries if not e.is_dir]

    def paths(self) -> List[str]:
        return [e.rel_path for e in self.files()]

    def restrict(self, paths: Iterable[str]) -> "CollectedTree":
        """Keep only the files in *paths*, dropping directories left empty."""
        keep = set(paths)
        kept_files = [e for e in self.entries if not e.is_dir and e.rel_path in keep]
        live_dirs: Set[Tuple[str, ...]] = set()
        for f in kept_files:
            for i in range(1, len(f.parts)):
                live_dirs.add(f.parts[:i])
        return CollectedTree(
            [
                e
                for e in self.entries
                if (e.is_dir and e.parts in live_dirs)
                or (not e.is_dir and e.rel_path in keep)
            ]
        )


@dataclass
class FormattedBuffer:
    text: str
    copied: List[str]
    warnings: List[CollectionWarning]


# Filter-spec utilities
def parse_extensions(values: Optional[Iterable[str]]) -> FilterSpec:
    """Normalise ``["py,RS", ".toml"]`` into ``{"py", "rs", "toml"}``."""
    exts: Set[str] = set()
    for value in values or ():
        for item in value.split(","):
            item = item.strip().lstrip(".").lower()
            if item:
                exts.add(item)
    return frozenset(exts)


def accepts(path: PathLike, filter_spec: Optional[FilterSpec] = None) -> bool:
    if not filter_spec:
        return True
    return _extension(path) in filter_spec


# Exclusion utilities
def build_exclude_spec(names: Optional[Iterable[str]] = None) -> "pathspec.PathSpec":
    """Compile directory names into a spec matching them at any depth."""
    all_names = list(DEFAULT_EXCLUDED_DIRS)
    for name in names or ():
        name = name.strip().strip("/")
        if name and name not in all_names:
            all_names.append(name)
    return pathspec.PathSpec.from_lines("gitwildmatch", [f"{n}/" for n in all_names])


def load_extra_excludes(config_path: Path) -> List[str]:
    if not config_path.exists():
        raise ConfigFileError(f"Config file '{config_path}' does not exist")
    if not config_path.is_file():
        raise ConfigFileError(f"'{config_path}' is not a file")
    try:
        with config_path.open("r", encoding="utf-8") as fh:
            return [
                ln.strip()
                for ln in fh
                if ln.strip() and not ln.lstrip().startswith("#")
            ]
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigFileError(f"Could not read config file '{config_path}': {e}")


# Directory walking
def _list_dir(path: Path) -> List[Path]:
    return sorted(path.iterdir(), key=lambda p: p.name)


def _dir_identity(path: Path) -> Tuple[int, int]:
    st = path.stat()
    return (st.st_dev, st.st_ino)


def collect(
    root: PathLike,
    filter_spec: Optional[FilterSpec] = None,
    *,
    exclude_dirs: Optional[Iterable[str]] = None,
    include_hidden: bool = False,
    follow_links: bool = True,
) -> Tuple[CollectedTree, str, List[CollectionWarning]]:
    """
    Walk *root* and return ``(tree, tree_text, warnings)``.

    • Children are visited in name order, so repeated runs are identical.
    • Directories with no accepted file beneath them are left out.
    • Unlistable directories become warnings instead of aborting the walk.
    • A directory is never re-entered below itself, which bounds
      traversal through symlink cycles.
    """
    root_path = Path(root)
    try:
        is_dir = root_path.is_dir()
    except OSError:
        is_dir = False
    if not is_dir:
        raise NotADirectory(f"Root path '{root_path}' is not a directory")

    exclude_spec = build_exclude_spec(exclude_dirs)
    warnings: List[CollectionWarning] = []

    def _walk(
        directory: Path,
        parts: Tuple[str, ...],
        ancestors: FrozenSet[Tuple[int, int]],
    ) -> List[FileEntry]:
        rel = "/".join(parts)
        try:
            children = _list_dir(directory)
        except OSError as e:
            warnings.append(
                CollectionWarning(
                    UNREADABLE_SUBTREE,
                    rel or ".",
                    f"Could not read directory ({e.strerror or e})",
                )
            )
            return []

        out: List[FileEntry] = []
        for child in children:
            name = child.name
            if not include_hidden and name.startswith("."):
                continue
            child_parts = parts + (name,)
            child_rel = "/".join(child_parts)
            try:
                child_is_dir = child.is_dir()
                child_is_file = not child_is_dir and child.is_file()
            except OSError as e:
                warnings.append(
                    CollectionWarning(
                        UNREADABLE_SUBTREE,
                        child_rel,
                        f"Could not stat entry ({e.strerror or e})",
                    )
                )
                continue

            if child_is_dir:
                if exclude_spec.match_file(child_rel + "/"):
                    continue
                if child.is_symlink() and not follow_links:
                    continue
                try:
                    identity = _dir_identity(child)
                except OSError as e:
                    warnings.append(
                        CollectionWarning(
                            UNREADABLE_SUBTREE,
                            child_rel,
                            f"Could not stat directory ({e.strerror or e})",
                        )
                    )
                    continue
                # a link back to an ancestor would loop forever
                if identity in ancestors:
                    continue
                below = _walk(child, child_parts, ancestors | {identity})
                if below:
                    out.append(FileEntry(child_parts, DIR))
                    out.extend(below)
            elif child_is_file and accepts(name, filter_spec):
                out.append(FileEntry(child_parts, FILE))
        return out

    tree = CollectedTree(_walk(root_path, (), frozenset({_dir_identity(root_path)})))
    return tree, render_tree(tree), warnings


# Tree renderer
def render_tree(tree: CollectedTree) -> str:
    """
    Return a text tree (à la the Unix ``tree`` utility) of *tree*'s entries.

    Entry order is preserved, so the listed files read in the same order as
    the sections of the copied buffer.
    """
    # nested dict keyed by name; None marks a file
    nested: Dict[str, Optional[dict]] = {}
    for entry in tree:
        cur = nested
        for part in entry.parts[:-1]:
            cur = cur.setdefault(part, {})  # type: ignore[assignment]
        if entry.is_dir:
            cur.setdefault(entry.name, {})
        else:
            cur[entry.name] = None

    lines: List[str] = []

    def _walk(node: Dict[str, Optional[dict]], prefix: str = "") -> None:
        items = list(node.items())
        for idx, (name, child) in enumerate(items):
            last = idx == len(items) - 1
            connector = "└── " if last else "├── "
            lines.append(f"{prefix}{connector}{name}")
            if child is not None:
                _walk(child, prefix + ("    " if last else "│   "))

    _walk(nested)
    return "\n".join(lines)


# Buffer formatter
def format_buffer(root: PathLike, paths: Iterable[str]) -> FormattedBuffer:
    root_path = Path(root)
    sections: List[str] = []
    copied: List[str] = []
    warnings: List[CollectionWarning] = []

    for rel in paths:
        p = root_path.joinpath(*rel.split("/"))
        try:
            with p.open("r", encoding="utf-8", newline="") as fh:
                text = fh.read()
        except UnicodeDecodeError:
            warnings.append(CollectionWarning(NON_TEXT_FILE, rel, "Skipping non-text file"))
            continue
        except OSError as e:
            warnings.append(
                CollectionWarning(UNREADABLE_FILE, rel, f"Could not read file ({e.strerror or e})")
            )
            continue

        sections.append(f"{header_line(rel)}\n\n{text}\n\n")
        copied.append(rel)

    return FormattedBuffer("".join(sections), copied, warnings)


# Pipeline
@dataclass
class RunResult:
    root: Path
    tree: CollectedTree
    tree_text: str
    buffer: str
    warnings: List[CollectionWarning]

    @property
    def copied(self) -> List[str]:
        return self.tree.paths()


def run(
    root: PathLike,
    filter_spec: Optional[FilterSpec],
    sink: ClipboardSink,
    *,
    exclude_dirs: Optional[Iterable[str]] = None,
    include_hidden: bool = False,
    follow_links: bool = True,
) -> RunResult:
    """Collect, format and hand the buffer to *sink* (``set_clipboard_text``)."""
    root_path = Path(root)
    tree, _, warnings = collect(
        root_path,
        filter_spec,
        exclude_dirs=exclude_dirs,
        include_hidden=include_hidden,
        follow_links=follow_links,
    )
    formatted = format_buffer(root_path, tree.paths())
    warnings.extend(formatted.warnings)

    copied_tree = tree.restrict(formatted.copied)
    result = RunResult(
        root=root_path,
        tree=copied_tree,
        tree_text=render_tree(copied_tree),
        buffer=formatted.text,
        warnings=warnings,
    )
    if formatted.copied:
        sink.set_clipboard_text(formatted.text)
    return result
