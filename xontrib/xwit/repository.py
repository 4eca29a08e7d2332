'''
Implementation of the `GitRepository` class: the browsing operations.

Each operation is a single read-only query against the object store. Nothing
is cached between calls; every result is built fresh.

Errors from the git backend are translated here, once, into the taxonomy in
`types.py`. The backend's exception is kept as `__cause__`.
'''

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from xonsh.lib.pretty import RepresentationPrinter

from xontrib.xwit import vars as xv
from xontrib.xwit.git_cmd import GitStoreError, GitCommandError
from xontrib.xwit.ids import ObjectId
from xontrib.xwit.listing import list_index, list_tree, strip_path
from xontrib.xwit.models import (
    BinaryContent, Blob, Branch, Commit, IndexEntry, ListingResult,
    Reference, Remote, StatusEntry, Tag, TextContent, TreeEntry,
)
from xontrib.xwit.bytetext import ByteText
from xontrib.xwit.store import (
    GitStore, MissingObjectError, NotARepositoryError, is_binary,
)
from xontrib.xwit.types import (
    ObjectNotFoundError, RepositoryNotFoundError, UnhandledGitError,
)


@contextmanager
def _translated_errors(location: Path|str|None = None) -> Iterator[None]:
    '''
    Map the backend's exceptions onto the browsing errors.
    '''
    try:
        yield
    except NotARepositoryError as ex:
        raise RepositoryNotFoundError(location if location is not None else ex.path) from ex
    except MissingObjectError as ex:
        raise ObjectNotFoundError(ex.id, ex.detail) from ex
    except GitCommandError as ex:
        raise UnhandledGitError(ex.diagnostic) from ex
    except (GitStoreError, OSError) as ex:
        raise UnhandledGitError(str(ex)) from ex


class GitRepository:
    """
    A git repository, opened for browsing.

    Obtain one with `GitRepository.open(location)` or `open_repository()`.
    """

    __store: GitStore

    @property
    def path(self) -> Path:
        '''
        The location the repository was opened from, as given.
        '''
        return self.__store.path

    @property
    def git_dir(self) -> Path:
        return self.__store.git_dir

    @property
    def bare(self) -> bool:
        return self.__store.bare

    def __init__(self, store: GitStore):
        self.__store = store

    @classmethod
    def open(cls, location: Path|str) -> 'GitRepository':
        '''
        Open the repository at `location`.

        RAISES
        ------
        RepositoryNotFoundError
            if `location` is not a repository (parents are not searched).
        UnhandledGitError
            for any other failure.
        '''
        with _translated_errors(location):
            store = GitStore.open(location)
        xv.trace('COMMANDS', f"Opened {store.git_dir}")
        return cls(store)

    def head(self) -> ObjectId:
        '''
        The commit HEAD points at.
        '''
        with _translated_errors():
            return self.__store.head()

    def get_blob(self, id: ObjectId|str|bytes) -> Blob:
        '''
        Look up a blob by its full id.

        RAISES
        ------
        ValueError
            if `id` is not a well-formed object id.
        ObjectNotFoundError
            if no blob with this id exists.
        UnhandledGitError
            for any other failure.
        '''
        id = ObjectId(id)
        with _translated_errors():
            raw = self.__store.read_blob(id)
            short_id = self.__store.short_id(raw.id)
        binary = is_binary(raw.data)
        content = BinaryContent(raw.data) if binary else TextContent(ByteText(raw.data))
        return Blob(
            id=raw.id,
            short_id=short_id,
            size=raw.size,
            is_binary=binary,
            content=content,
        )

    def list_branches(self) -> list[Branch]:
        with _translated_errors():
            return self.__store.branches()

    def list_tags(self) -> list[Tag]:
        with _translated_errors():
            return self.__store.tags()

    def list_references(self) -> list[Reference]:
        with _translated_errors():
            return self.__store.references()

    def list_remotes(self) -> list[Remote]:
        with _translated_errors():
            return self.__store.remotes()

    def list_status(self) -> list[StatusEntry]:
        with _translated_errors():
            return self.__store.statuses()

    def list_commits(self) -> list[Commit]:
        '''
        The history reachable from HEAD, newest first.
        '''
        with _translated_errors():
            return self.__store.commits()

    def list_tree(self, path: str = '') -> ListingResult:
        '''
        The immediate children of `path` in HEAD's tree. A path naming a
        file gives just that entry; an unknown path gives an empty result.
        '''
        with _translated_errors():
            tree = self.__store.tree_of(self.__store.head())
            return list_tree(self.__store, tree, path)

    def list_index(self, path: str = '') -> ListingResult:
        '''
        The immediate children of `path` in the staged index. Deeper
        entries are folded into directory nodes.
        '''
        with _translated_errors():
            return list_index(self.__store.index_entries(), path)

    def view_tree(self, path: str = '') -> Blob|ListingResult:
        '''
        Browse HEAD's tree: the file's content if `path` names a file,
        otherwise the listing.
        '''
        listing = self.list_tree(path)
        match listing:
            case (TreeEntry(is_tree=False) as entry,) if entry.path == strip_path(path):
                return self.get_blob(entry.id)
        return listing

    def view_index(self, path: str = '') -> Blob|ListingResult:
        '''
        Browse the index: the file's content if an entry's path is exactly
        `path`, otherwise the listing.
        '''
        listing = self.list_index(path)
        match listing.find(strip_path(path)):
            case IndexEntry(id=id):
                return self.get_blob(id)
        return listing

    def __repr__(self):
        return f"GitRepository({str(self.path)!r})"

    def _repr_pretty_(self, p: RepresentationPrinter, cycle: bool):
        kind = 'bare' if self.bare else 'worktree'
        p.text(f"GitRepository({self.path}, {kind}, git_dir={self.git_dir})")


def open_repository(location: Optional[Path|str] = None) -> GitRepository:
    '''
    Open the repository at `location`, by default `$XWIT_REPO_ROOT`.
    '''
    if location is None:
        location = xv.repo_root()
    return GitRepository.open(location)
