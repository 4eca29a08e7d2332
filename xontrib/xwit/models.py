'''
The records returned by the browsing operations.

All of them are read-only snapshots, built fresh for every query and
discarded afterwards. Nothing here talks to git.
'''

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional, TypeAlias, Union

from xontrib.xwit.bytetext import ByteText
from xontrib.xwit.ids import ObjectId
from xontrib.xwit.types import (
    BranchKind, ObjectKind, ReferenceKind, StatusFlag,
)


def _mode_prefix(kind: ObjectKind, mode: int) -> str:
    '''
    One-letter type marker for listings.
    '''
    if kind is ObjectKind.TREE:
        return "D"
    elif mode == 0o120000:
        return "L"
    elif mode == 0o160000:
        return "S"
    elif mode == 0o100755:
        return "X"
    else:
        return "-"


@dataclass(frozen=True)
class TreeEntry:
    """
    An entry of a commit's tree.

    `root` is the directory the entry was found in: empty at the top level,
    otherwise a prefix ending in '/'. The full path is `root + name`.
    """
    name: ByteText
    id: ObjectId
    kind: ObjectKind
    filemode: int
    root: str = ''

    @property
    def path(self) -> str:
        return f'{self.root}{self.name}'

    @property
    def is_tree(self) -> bool:
        return self.kind is ObjectKind.TREE

    @property
    def prefix(self) -> str:
        return _mode_prefix(self.kind, self.filemode)

    def __format__(self, fmt: str):
        suffix = '/' if self.is_tree else ''
        return f"{self.prefix} {self.id:{fmt}} {self.name}{suffix}"

    def _repr_pretty_(self, p, cycle):
        p.text(f"TreeEntry({self.path!r}, {self.kind.value}, {self.id})")


@dataclass(frozen=True)
class IndexEntry:
    """
    An entry of the staged index. The index is flat: only the full
    repository-relative path is known.
    """
    path: ByteText
    id: ObjectId
    mode: int
    file_size: int = 0
    uid: int = 0
    gid: int = 0
    ctime: int = 0
    mtime: int = 0
    stage: int = 0

    @property
    def name(self) -> str:
        return self.path.rsplit('/', 1)[-1]

    @property
    def prefix(self) -> str:
        return _mode_prefix(ObjectKind.BLOB, self.mode)

    def __format__(self, fmt: str):
        return f"{self.prefix} {self.id:{fmt}} {self.file_size:>8d} {self.path}"

    def _repr_pretty_(self, p, cycle):
        p.text(f"IndexEntry({self.path!r}, {self.mode:06o}, {self.id})")


@dataclass(frozen=True)
class DirectoryNode:
    """
    A directory inferred from entries below it. It is not stored anywhere,
    so it has no object id.
    """
    name: str
    path: str

    def __format__(self, fmt: str):
        return f"D {'-':{len(format(ObjectId.zero(), fmt))}s} {self.name}/"

    def _repr_pretty_(self, p, cycle):
        p.text(f"DirectoryNode({self.path!r})")


PathEntry: TypeAlias = Union[TreeEntry, IndexEntry, DirectoryNode]


class ListingResult(tuple[PathEntry, ...]):
    """
    The immediate children of a path, in discovery order.

    Immutable. Never holds two entries with the same full path.
    """
    def __new__(cls, entries: Iterable[PathEntry] = ()):
        return super().__new__(cls, entries)

    @property
    def paths(self) -> list[str]:
        return [str(e.path) for e in self]

    def find(self, path: str) -> Optional[PathEntry]:
        '''
        The entry with exactly this full path, if present.
        '''
        for e in self:
            if e.path == path:
                return e
        return None

    def __repr__(self):
        return f"ListingResult({list(self)!r})"

    def __format__(self, fmt: str):
        return "\n".join(format(e, fmt) for e in self)

    def _repr_pretty_(self, p, cycle):
        if cycle:
            p.text("ListingResult(...)")
            return
        with p.group(4, f"ListingResult(len={len(self)}, '''", "\n''')"):
            for e in self:
                p.break_()
                p.text(format(e, 'a'))


@dataclass(frozen=True)
class BinaryContent:
    data: bytes

    def __len__(self):
        return len(self.data)


@dataclass(frozen=True)
class TextContent:
    text: ByteText

    def __len__(self):
        return len(self.text.raw)


BlobContent: TypeAlias = Union[BinaryContent, TextContent]


@dataclass(frozen=True)
class Blob:
    """
    A file's content. Binary-vs-text classification comes from the
    object store and is not re-derived.
    """
    id: ObjectId
    short_id: str
    size: int
    is_binary: bool
    content: BlobContent = field(repr=False)

    @property
    def data(self) -> bytes:
        match self.content:
            case BinaryContent(data=data):
                return data
            case TextContent(text=text):
                return text.raw
        raise TypeError(f"Unknown blob content: {self.content!r}")

    @property
    def text(self) -> Optional[ByteText]:
        if isinstance(self.content, TextContent):
            return self.content.text
        return None

    def __str__(self):
        return f"blob {self.id} {self.size:>8d}"

    def _repr_pretty_(self, p, cycle):
        kind = 'binary' if self.is_binary else 'text'
        p.text(f"Blob({self.short_id}, {self.size}, {kind})")


@dataclass(frozen=True)
class Signature:
    name: ByteText
    email: ByteText

    def __str__(self):
        return f"{self.name} <{self.email}>"


@dataclass(frozen=True)
class Commit:
    id: ObjectId
    short_id: str
    author: Signature
    committer: Signature
    message: ByteText
    time: datetime
    '''
    The committer time, in the committer's UTC offset.
    '''

    @property
    def summary(self) -> str:
        return self.message.split('\n', 1)[0]

    def __format__(self, fmt: str):
        return f"{self.short_id} {self.time.isoformat()} {self.author.name}: {self.summary}"

    def _repr_pretty_(self, p, cycle):
        p.text(f"Commit({self.short_id}, {self.summary!r})")


@dataclass(frozen=True)
class Upstream:
    name: ByteText
    shorthand: ByteText
    target: Optional[ObjectId]
    target_short: str = ''


@dataclass(frozen=True)
class Branch:
    kind: BranchKind
    name: ByteText
    shorthand: ByteText
    target: Optional[ObjectId]
    target_short: str = ''
    upstream: Optional[Upstream] = None

    def __format__(self, fmt: str):
        upstream = f" -> {self.upstream.shorthand}" if self.upstream else ''
        return f"{self.target_short or '-'} {self.shorthand}{upstream}"


@dataclass(frozen=True)
class Reference:
    kind: Optional[ReferenceKind]
    name: ByteText
    shorthand: ByteText
    target: Optional[ObjectId]
    target_short: str = ''

    def __format__(self, fmt: str):
        kind = self.kind.value if self.kind else '-'
        return f"{self.target_short or '-'} {kind:8s} {self.name}"


@dataclass(frozen=True)
class Tag:
    name: ByteText
    shorthand: ByteText
    target: ObjectId
    '''
    What the tag ref points at: the tag object for annotated tags.
    '''
    target_short: str = ''
    '''
    The abbreviated id of the commit the tag peels to, if any.
    '''

    def __format__(self, fmt: str):
        return f"{self.target_short or '-'} {self.shorthand}"


@dataclass(frozen=True)
class Remote:
    name: ByteText
    url: ByteText

    def __format__(self, fmt: str):
        return f"{self.name}\t{self.url}"


@dataclass(frozen=True)
class StatusEntry:
    path: ByteText
    status: StatusFlag

    @property
    def status_bits(self) -> int:
        return int(self.status)

    def __format__(self, fmt: str):
        return f"{','.join(self.status.names()) or 'CURRENT'} {self.path}"
