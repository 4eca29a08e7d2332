'''
The object store: a thin adapter over git plumbing commands.

`GitStore` provides the primitives the browsing operations are composed of:
opening a repository, resolving HEAD, listing one level of a tree, reading
the index, enumerating refs, remotes and status, and reading blobs. Each
method runs the git program and parses its machine-readable (`-z`) output.

Errors are raised with this module's exception types (`GitStoreError` and
subclasses). They are meant to be translated by `GitRepository`, not caught
by callers.
'''

from datetime import datetime, timedelta, timezone
from pathlib import Path
import re
from typing import NamedTuple, Optional, cast

from xontrib.xwit.bytetext import ByteText
from xontrib.xwit.git_cmd import _GitCmd, GitStoreError, GitCommandError
from xontrib.xwit.ids import ObjectId
from xontrib.xwit.models import (
    Branch, Commit, IndexEntry, Reference, Remote, Signature, StatusEntry,
    Tag, TreeEntry, Upstream,
)
from xontrib.xwit.types import (
    BranchKind, GitObjectType, ObjectKind, ReferenceKind, StatusFlag,
)


class NotARepositoryError(GitStoreError):
    '''
    The location is not a git repository.
    '''
    path: Path
    def __init__(self, path: Path, detail: str = ''):
        super().__init__(f"Not a git repository: {path}{': ' if detail else ''}{detail}")
        self.path = path


class MissingObjectError(GitStoreError):
    '''
    No object with the requested id (and type) exists.
    '''
    id: str
    def __init__(self, id: object, detail: str = 'missing'):
        super().__init__(f"{id} {detail}")
        self.id = str(id)
        self.detail = detail


FILTER_BYTES_TO_CHECK_NUL = 8000
'''
How much of a blob the binary heuristic looks at.
'''

_BOMS = (
    # (bom, is_wide): a wide BOM means UTF-16/32, which is treated as binary.
    (b'\x00\x00\xfe\xff', True),
    (b'\xff\xfe\x00\x00', True),
    (b'\xef\xbb\xbf', False),
    (b'\xfe\xff', True),
    (b'\xff\xfe', True),
)

_SPACE = frozenset(b' \t\n\v\f\r')


def is_binary(data: bytes) -> bool:
    '''
    Decide whether blob content is binary, the way libgit2 does
    (`git_blob_is_binary`): only the first 8000 bytes are examined; a
    UTF-16/32 byte-order mark or any NUL byte means binary; otherwise the
    content is binary when non-printable bytes are more than 1/128th of the
    printable ones.
    '''
    data = data[:FILTER_BYTES_TO_CHECK_NUL]
    start = 0
    for bom, wide in _BOMS:
        if data.startswith(bom):
            if wide:
                return True
            start = len(bom)
            break
    printable = 0
    nonprintable = 0
    for c in data[start:]:
        # Printable: above 0x1F except DEL, plus BS, ESC and FF.
        if (c > 0x1F and c != 0x7F) or c in (0x08, 0x1B, 0x0C):
            printable += 1
        elif c == 0:
            return True
        elif c not in _SPACE:
            nonprintable += 1
    return (printable >> 7) < nonprintable


class RawBlob(NamedTuple):
    id: ObjectId
    type: GitObjectType
    size: int
    data: bytes


_RE_INDEX_ENTRY = re.compile(
    rb'(?P<mode>[0-7]+) (?P<id>[0-9a-f]+) (?P<stage>[0-3])\t(?P<path>[^\0]*)\0'
    rb'(?P<debug>(?:  [^\n]*\n)*)'
)
_RE_DEBUG_FIELD = re.compile(rb'(\w+): (\d+)(?::(\d+))?')

_RE_TREE_ENTRY = re.compile(
    rb'(?P<mode>[0-7]+) (?P<type>\w+) (?P<id>[0-9a-f]+)\t(?P<name>.*)',
    re.DOTALL,
)

_STATUS_INDEX = {
    ord('A'): StatusFlag.INDEX_NEW,
    ord('M'): StatusFlag.INDEX_MODIFIED,
    ord('D'): StatusFlag.INDEX_DELETED,
    ord('T'): StatusFlag.INDEX_TYPECHANGE,
}
_STATUS_WORKTREE = {
    ord('M'): StatusFlag.WT_MODIFIED,
    ord('D'): StatusFlag.WT_DELETED,
    ord('T'): StatusFlag.WT_TYPECHANGE,
}
_STATUS_CONFLICTS = frozenset((b'DD', b'AU', b'UD', b'UA', b'DU', b'AA', b'UU'))

_REF_FORMAT = '%00'.join((
    '%(refname)',
    '%(refname:short)',
    '%(objectname)',
    '%(objectname:short)',
    '%(objecttype)',
    '%(*objectname:short)',
    '%(*objecttype)',
    '%(symref)',
    '%(upstream)',
    '%(upstream:short)',
))

_LOG_FIELDS = ('%H', '%h', '%an', '%ae', '%cn', '%ce', '%cd', '%B')
_LOG_FORMAT = '%x00'.join(_LOG_FIELDS)


class _RefRecord(NamedTuple):
    name: bytes
    shorthand: bytes
    target: Optional[ObjectId]
    target_short: str
    '''
    Abbreviated id of the commit this ref peels to, or ''.
    '''
    symref: bytes
    upstream: bytes
    upstream_short: bytes


def _parse_ref_line(line: bytes) -> _RefRecord:
    (name, short, oid, oid_short, otype, peeled_short, peeled_type,
     symref, upstream, upstream_short) = line.split(b'\0')
    if otype == b'commit':
        target_short = oid_short.decode('ascii')
    elif peeled_type == b'commit':
        target_short = peeled_short.decode('ascii')
    else:
        target_short = ''
    return _RefRecord(
        name=name,
        shorthand=short,
        target=ObjectId.parse(oid),
        target_short=target_short,
        symref=symref,
        upstream=upstream,
        upstream_short=upstream_short,
    )


def _parse_date(value: bytes) -> datetime:
    '''
    Parse a `--date=raw` value: seconds since the epoch and a UTC offset.
    '''
    secs, _, offset = value.decode('ascii').partition(' ')
    tz = timezone.utc
    if offset:
        sign = -1 if offset.startswith('-') else 1
        digits = offset.lstrip('+-')
        tz = timezone(sign * timedelta(hours=int(digits[:2]), minutes=int(digits[2:4])))
    return datetime.fromtimestamp(int(secs), tz=tz)


class GitStore(_GitCmd):
    """
    Read access to one repository through the git program.
    """

    __path: Path
    @property
    def path(self) -> Path:
        '''
        The location the store was opened from.
        '''
        return self.__path

    __git_dir: Path
    @property
    def git_dir(self) -> Path:
        return self.__git_dir

    __work_tree: Optional[Path]
    @property
    def work_tree(self) -> Optional[Path]:
        '''
        The root of the work tree; `None` for a bare repository.
        '''
        return self.__work_tree

    @property
    def bare(self) -> bool:
        return self.__work_tree is None

    def __init__(self, path: Path, git_dir: Path, work_tree: Optional[Path]):
        super().__init__(work_tree or git_dir,
                         git_dir=git_dir,
                         work_tree=work_tree)
        self.__path = path
        self.__git_dir = git_dir
        self.__work_tree = work_tree

    @classmethod
    def open(cls, path: Path|str) -> 'GitStore':
        '''
        Open the repository at exactly this location: a work tree root, its
        `.git` directory, or a bare repository. Parent directories are not
        searched.

        RAISES
        ------
        NotARepositoryError
        GitStoreError
        '''
        path = Path(path)
        location = path.resolve()
        if not location.is_dir():
            raise NotARepositoryError(path, 'no such directory')
        # The ceiling stops git from searching the parent directories.
        probe = _GitCmd(location, ceiling=location.parent)
        try:
            lines = probe.git_lines('rev-parse',
                                    '--absolute-git-dir',
                                    '--is-bare-repository',
                                    '--is-inside-work-tree')
            if len(lines) != 3:
                raise GitStoreError(f"Unexpected rev-parse output: {lines!r}")
            git_dir = Path(lines[0].decode()).resolve()
            bare = lines[1].strip() == b'true'
            inside_work_tree = lines[2].strip() == b'true'
            work_tree: Optional[Path] = None
            if inside_work_tree:
                work_tree = Path(probe.git('rev-parse', '--show-toplevel')).resolve()
            elif not bare and git_dir.name == '.git':
                work_tree = git_dir.parent
        except GitCommandError as ex:
            if b'not a git repository' in ex.stderr.lower():
                raise NotARepositoryError(path) from ex
            raise
        if location not in (git_dir, work_tree):
            raise NotARepositoryError(path, f'inside repository {git_dir}')
        return cls(path, git_dir, work_tree)

    def short_id(self, id: ObjectId) -> str:
        '''
        The shortest abbreviation of `id` that is currently unique.
        '''
        return self.git('rev-parse', '--short', str(id))

    def head(self) -> ObjectId:
        '''
        The commit HEAD resolves to.
        '''
        return ObjectId(self.git('rev-parse', '--verify', 'HEAD^{commit}'))

    def tree_of(self, commit: ObjectId) -> ObjectId:
        '''
        The root tree of a commit.
        '''
        return ObjectId(self.git('rev-parse', '--verify', f'{commit}^{{tree}}'))

    def children(self, tree: ObjectId, root: str = '') -> list[TreeEntry]:
        '''
        The entries of one tree, in stored order, each with `root` set.
        '''
        result: list[TreeEntry] = []
        for record in self.git_records('ls-tree', '-z', '--full-tree', str(tree)):
            m = _RE_TREE_ENTRY.fullmatch(record)
            if m is None:
                raise GitStoreError(f"Unexpected ls-tree output: {record!r}")
            result.append(TreeEntry(
                name=ByteText(m['name']),
                id=ObjectId(m['id']),
                kind=ObjectKind.from_git(m['type'].decode('ascii')),
                filemode=int(m['mode'], 8),
                root=root,
            ))
        return result

    def index_entries(self) -> list[IndexEntry]:
        '''
        The staged index, flat, in index order (sorted by path, then stage).
        '''
        data = self.git_binary('ls-files', '--stage', '--debug', '-z')
        result: list[IndexEntry] = []
        pos = 0
        while pos < len(data):
            m = _RE_INDEX_ENTRY.match(data, pos)
            if m is None:
                raise GitStoreError(f"Unexpected ls-files output at {pos}: {data[pos:pos+80]!r}")
            pos = m.end()
            stat: dict[bytes, int] = {
                key: int(value)
                for key, value, _ in _RE_DEBUG_FIELD.findall(m['debug'])
            }
            result.append(IndexEntry(
                path=ByteText(m['path']),
                id=ObjectId(m['id']),
                mode=int(m['mode'], 8),
                stage=int(m['stage']),
                file_size=stat.get(b'size', 0),
                uid=stat.get(b'uid', 0),
                gid=stat.get(b'gid', 0),
                ctime=stat.get(b'ctime', 0),
                mtime=stat.get(b'mtime', 0),
            ))
        return result

    def read_object(self, id: ObjectId) -> RawBlob:
        '''
        Read any object's type, size and content.

        RAISES
        ------
        MissingObjectError
            if no object has this id.
        '''
        data = self.git_binary('cat-file', '--batch', input=f'{id}\n'.encode('ascii'))
        header, _, rest = data.partition(b'\n')
        fields = header.split()
        if len(fields) == 2 and fields[1] in (b'missing', b'ambiguous'):
            raise MissingObjectError(id, fields[1].decode('ascii'))
        if len(fields) != 3:
            raise GitStoreError(f"Unexpected cat-file output: {header!r}")
        size = int(fields[2])
        return RawBlob(
            id=ObjectId(fields[0]),
            type=cast(GitObjectType, fields[1].decode('ascii')),
            size=size,
            data=rest[:size],
        )

    def read_blob(self, id: ObjectId) -> RawBlob:
        '''
        Read a blob.

        RAISES
        ------
        MissingObjectError
            if no object has this id, or the object is not a blob.
        '''
        raw = self.read_object(id)
        if raw.type != 'blob':
            raise MissingObjectError(id, f'is a {raw.type}, not a blob')
        return raw

    def _refs(self, *patterns: str) -> list[_RefRecord]:
        lines = self.git_lines('for-each-ref', f'--format={_REF_FORMAT}', *patterns)
        return [_parse_ref_line(line) for line in lines if line]

    def references(self) -> list[Reference]:
        return [
            Reference(
                kind=ReferenceKind.SYMBOLIC if r.symref else ReferenceKind.DIRECT,
                name=ByteText(r.name),
                shorthand=ByteText(r.shorthand),
                target=r.target,
                target_short=r.target_short,
            )
            for r in self._refs()
        ]

    def branches(self) -> list[Branch]:
        '''
        Local branches, then remote-tracking branches.
        '''
        refs = self._refs()
        known = {r.name: r for r in refs}
        local = [r for r in refs if r.name.startswith(b'refs/heads/')]
        remote = [r for r in refs if r.name.startswith(b'refs/remotes/')]
        result: list[Branch] = []
        for r in local + remote:
            kind = BranchKind.LOCAL if r.name.startswith(b'refs/heads/') else BranchKind.REMOTE
            upstream: Optional[Upstream] = None
            if r.upstream and (u := known.get(r.upstream)) is not None:
                upstream = Upstream(
                    name=ByteText(u.name),
                    shorthand=ByteText(r.upstream_short or u.shorthand),
                    target=u.target,
                    target_short=u.target_short,
                )
            result.append(Branch(
                kind=kind,
                name=ByteText(r.name),
                shorthand=ByteText(r.shorthand),
                target=r.target,
                target_short=r.target_short,
                upstream=upstream,
            ))
        return result

    def tags(self) -> list[Tag]:
        return [
            Tag(
                name=ByteText(r.name),
                shorthand=ByteText(r.shorthand),
                target=r.target,
                target_short=r.target_short,
            )
            for r in self._refs('refs/tags')
            if r.target is not None
        ]

    def remotes(self) -> list[Remote]:
        names = [n for n in self.git_lines('remote') if n]
        urls: dict[bytes, bytes] = {}
        proc = self.run('config', '-z', '--get-regexp', r'^remote\..*\.url$', check=False)
        # Status 1 means no matching keys.
        if proc.returncode not in (0, 1):
            raise GitCommandError(['config', '--get-regexp'], proc.returncode, proc.stderr)
        for record in proc.stdout.split(b'\0'):
            key, _, value = record.partition(b'\n')
            if key.startswith(b'remote.') and key.endswith(b'.url'):
                urls.setdefault(key[len(b'remote.'):-len(b'.url')], value)
        return [Remote(name=ByteText(n), url=ByteText(urls.get(n, b''))) for n in names]

    def statuses(self) -> list[StatusEntry]:
        '''
        Working-tree status, including untracked and ignored files.
        '''
        records = self.git_records('status', '--porcelain=v1', '-z',
                                   '--untracked-files=all', '--ignored',
                                   '--no-renames')
        result: list[StatusEntry] = []
        for record in records:
            xy, path = record[:2], record[3:]
            x, y = xy[0], xy[1]
            if xy == b'??':
                flags = StatusFlag.WT_NEW
            elif xy == b'!!':
                flags = StatusFlag.IGNORED
            elif xy in _STATUS_CONFLICTS:
                flags = StatusFlag.CONFLICTED
            else:
                flags = StatusFlag.CURRENT
                flags |= _STATUS_INDEX.get(x, StatusFlag.CURRENT)
                flags |= _STATUS_WORKTREE.get(y, StatusFlag.CURRENT)
            result.append(StatusEntry(path=ByteText(path), status=flags))
        return result

    def commits(self) -> list[Commit]:
        '''
        History reachable from HEAD, newest first.
        '''
        fields = self.git_records('log', '-z', '--date=raw',
                                  f'--format={_LOG_FORMAT}', 'HEAD', '--')
        n = len(_LOG_FIELDS)
        if len(fields) % n:
            raise GitStoreError(f"Unexpected log output: {len(fields)} fields")
        return [self._commit(fields[i:i + n]) for i in range(0, len(fields), n)]

    def _commit(self, fields: list[bytes]) -> Commit:
        oid, short, an, ae, cn, ce, date, message = fields
        return Commit(
            id=ObjectId(oid),
            short_id=short.decode('ascii'),
            author=Signature(name=ByteText(an), email=ByteText(ae)),
            committer=Signature(name=ByteText(cn), email=ByteText(ce)),
            message=ByteText(message),
            time=_parse_date(date),
        )

