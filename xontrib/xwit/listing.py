'''
Directory views over path-keyed collections.

Two sources hold the files of a repository snapshot, and they are shaped
differently:

* a commit's tree is nested: each tree lists its own entries and the
  subtrees are walked on demand;
* the staged index is flat: every entry carries its full path.

`list_tree` and `list_index` turn either one into the same thing: the
immediate children of a query path, as a `ListingResult`.

The two are not symmetric. A tree walk stops at the first entry
whose path matches; a matching index entry does not hide the entries that
share its path as a prefix, since the flat index has no nesting to make them
exclusive.

Everything here is a pure function of its arguments.
'''

from enum import Enum
from typing import Callable, Iterable, Iterator, Protocol

from xontrib.xwit import vars as xv
from xontrib.xwit.ids import ObjectId
from xontrib.xwit.models import (
    DirectoryNode, IndexEntry, ListingResult, PathEntry, TreeEntry,
)


class WalkResult(Enum):
    '''
    What a walk visitor wants done after seeing an entry.
    '''
    CONTINUE = 'continue'
    '''Go on, descending into the entry if it is a tree.'''
    SKIP = 'skip'
    '''Go on, but do not descend into this entry.'''
    ABORT = 'abort'
    '''Stop the walk.'''


class TreeSource(Protocol):
    '''
    Anything that can list one level of a tree.
    '''
    def children(self, tree: ObjectId, root: str = '') -> Iterable[TreeEntry]:
        '''
        The entries of `tree`, in stored order, with `root` set to the
        given prefix.
        '''
        ...


Visitor = Callable[[TreeEntry], WalkResult]


def strip_path(path: str) -> str:
    '''
    Remove exactly one trailing '/'.
    '''
    return path[:-1] if path.endswith('/') else path


def walk(source: TreeSource, tree: ObjectId, visitor: Visitor) -> bool:
    '''
    Walk a tree pre-order: each entry is visited before the entries below it.

    The walk keeps an explicit stack of open trees rather than recursing,
    so deep trees do not grow the call stack. A subtree's entries are only
    requested from `source` when the walk descends into it.

    RETURNS
    -------
    bool
        `True` if the visitor aborted the walk.
    '''
    stack: list[Iterator[TreeEntry]] = [iter(source.children(tree))]
    while stack:
        entry = next(stack[-1], None)
        if entry is None:
            stack.pop()
            continue
        match visitor(entry):
            case WalkResult.ABORT:
                return True
            case WalkResult.CONTINUE if entry.is_tree:
                stack.append(iter(source.children(entry.id, f'{entry.path}/')))
    return False


def list_tree(source: TreeSource, tree: ObjectId, path: str = '') -> ListingResult:
    '''
    List the immediate children of `path` in a tree.

    - An empty path lists the tree's own entries.
    - A path naming a subtree lists that subtree's entries, with `root`
      set to the path plus '/'.
    - A path naming anything else gives a single entry: that one.
    - A path that matches nothing gives an empty result.
    '''
    path = strip_path(path)
    if not path:
        return ListingResult(source.children(tree))
    found: list[TreeEntry] = []

    def visit(entry: TreeEntry) -> WalkResult:
        current = entry.path
        if current == path:
            if entry.is_tree:
                found.extend(source.children(entry.id, f'{current}/'))
            else:
                found.append(entry)
            xv.trace('LISTING', f"tree match {current!r} ({entry.kind.value})")
            return WalkResult.ABORT
        if entry.is_tree and not path.startswith(f'{current}/'):
            return WalkResult.SKIP
        return WalkResult.CONTINUE

    if not walk(source, tree, visit):
        xv.trace('LISTING', f"tree has no {path!r}")
    return ListingResult(found)


def list_index(entries: Iterable[IndexEntry], path: str = '') -> ListingResult:
    '''
    List the immediate children of `path` in a flat index.

    Entries directly below `path` are returned as they are. Deeper entries
    are folded into one `DirectoryNode` per immediate subdirectory, placed
    where its first entry was seen. An entry whose path equals `path` is
    returned too, alongside anything below it.

    A conflicted path has an entry per merge stage; only one is listed,
    the one with the lowest stage.
    '''
    path = strip_path(path)
    depth = len(path.split('/')) if path else 0
    prefix = f'{path}/'
    seen: set[str] = set()
    # File path -> (position in result, stage listed there)
    files: dict[str, tuple[int, int]] = {}
    result: list[PathEntry] = []

    def add_file(entry: IndexEntry):
        match files.get(entry.path):
            case None:
                files[entry.path] = (len(result), entry.stage)
                result.append(entry)
            case (at, stage) if entry.stage < stage:
                files[entry.path] = (at, entry.stage)
                result[at] = entry

    for entry in entries:
        p = entry.path
        if p == path:
            add_file(entry)
        elif not path or p.startswith(prefix):
            parts = p.split('/', depth + 1)
            if len(parts) == depth + 1:
                add_file(entry)
            else:
                directory = '/'.join(parts[:depth + 1])
                if directory not in seen:
                    seen.add(directory)
                    result.append(DirectoryNode(name=parts[depth], path=directory))
    xv.trace('LISTING', f"index {path!r}: {len(result)} entries, {len(seen)} directories")
    return ListingResult(result)
