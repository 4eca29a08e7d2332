'''
Auxiliary types for the xwit xontrib.

Types for public use are re-exported from the xwit module via `__init__.py`
and the `__all__` variable.

The exceptions here are the stable, caller-facing taxonomy. Errors raised by
the git backend (see `store.py`) are translated into these at the boundary of
`GitRepository` and never escape it.
'''

from enum import Enum, IntFlag
from pathlib import Path
from typing import Literal, TypeAlias


GitObjectType: TypeAlias = Literal['blob', 'tree', 'commit', 'tag']
'''
The object type names used by git plumbing output.
'''


class ObjectKind(Enum):
    '''
    The kind of object a tree entry points at.
    '''
    BLOB = 'Blob'
    TREE = 'Tree'
    COMMIT = 'Commit'
    TAG = 'Tag'
    ANY = 'Any'

    @classmethod
    def from_git(cls, name: GitObjectType|str) -> 'ObjectKind':
        match name:
            case 'blob':
                return cls.BLOB
            case 'tree':
                return cls.TREE
            case 'commit':
                return cls.COMMIT
            case 'tag':
                return cls.TAG
            case _:
                return cls.ANY


class BranchKind(Enum):
    LOCAL = 'Local'
    REMOTE = 'Remote'


class ReferenceKind(Enum):
    DIRECT = 'Direct'
    SYMBOLIC = 'Symbolic'


class StatusFlag(IntFlag):
    '''
    Working-tree status bits. The layout matches libgit2's `git_status_t`,
    so `int(flag)` is comparable with other tools built on it.
    '''
    CURRENT = 0
    INDEX_NEW = 1 << 0
    INDEX_MODIFIED = 1 << 1
    INDEX_DELETED = 1 << 2
    INDEX_RENAMED = 1 << 3
    INDEX_TYPECHANGE = 1 << 4
    WT_NEW = 1 << 7
    WT_MODIFIED = 1 << 8
    WT_DELETED = 1 << 9
    WT_TYPECHANGE = 1 << 10
    WT_RENAMED = 1 << 11
    WT_UNREADABLE = 1 << 12
    IGNORED = 1 << 14
    CONFLICTED = 1 << 15

    def names(self) -> list[str]:
        '''
        The names of the bits that are set, lowest bit first.
        '''
        return [
            flag.name
            for flag in type(self)
            if flag.value and flag.value & self.value and flag.name
        ]


class WitException(Exception):
    """
    A base class for exceptions in the xwit xontrib.
    """
    def __init__(self, message: str, /):
        super().__init__(message)
        self.message = message


class WitError(WitException):
    '''
    Base class of the errors a browsing operation can fail with.
    '''


class RepositoryNotFoundError(WitError):
    '''
    Thrown when a location does not hold a valid repository.
    '''
    path: Path
    def __init__(self, path: Path|str):
        path = Path(path)
        super().__init__(f'Git repository not found: {path}')
        self.path = path


class ObjectNotFoundError(WitError):
    '''
    Thrown when a referenced object does not exist in the object store.
    '''
    id: str
    def __init__(self, id: object, detail: str = ''):
        message = f'Git object not found: {id}'
        if detail:
            message = f'{message} ({detail})'
        super().__init__(message)
        self.id = str(id)


class UnhandledGitError(WitError):
    '''
    Any other failure of the git backend: I/O errors, corruption,
    permissions, an unborn HEAD. The backend's own diagnostic text is
    kept as the message, unparsed.
    '''
