"""
Browse git repositories from `xonsh`, or from Python.

`xwit` exposes a repository's object graph (commits, trees, blobs, the staged
index, branches, tags, references, remotes and working-tree status) as
read-only snapshots. Directories of a commit's tree and of the index are
listed one level at a time, in the same shape.

    repo = open_repository('path/to/repo')
    repo.list_tree('src')
    repo.get_blob(repo.list_tree('README.md')[0].id)

Loaded as a xontrib, it adds the `wit-*` commands.

See https://xonsh.org/ for more information about `xonsh`.
"""

from xontrib.xwit.types import (
    GitObjectType,
    ObjectKind,
    BranchKind,
    ReferenceKind,
    StatusFlag,
    WitException,
    WitError,
    RepositoryNotFoundError,
    ObjectNotFoundError,
    UnhandledGitError,
)
from xontrib.xwit.ids import ObjectId
from xontrib.xwit.bytetext import ByteText
from xontrib.xwit.models import (
    TreeEntry,
    IndexEntry,
    DirectoryNode,
    ListingResult,
    Blob,
    BinaryContent,
    TextContent,
    Signature,
    Commit,
    Upstream,
    Branch,
    Reference,
    Tag,
    Remote,
    StatusEntry,
)
from xontrib.xwit.listing import (
    WalkResult,
    TreeSource,
    walk,
    list_tree,
    list_index,
)
from xontrib.xwit.repository import (
    GitRepository,
    open_repository,
)
from xontrib.xwit.to_json import to_json
from xontrib.xwit.main import (
    _load_xontrib_,
    _unload_xontrib_,
)

__all__ = (
    "_load_xontrib_",
    "_unload_xontrib_",
    "GitObjectType",
    "ObjectKind",
    "BranchKind",
    "ReferenceKind",
    "StatusFlag",
    "WitException",
    "WitError",
    "RepositoryNotFoundError",
    "ObjectNotFoundError",
    "UnhandledGitError",
    "ObjectId",
    "ByteText",
    "TreeEntry",
    "IndexEntry",
    "DirectoryNode",
    "ListingResult",
    "Blob",
    "BinaryContent",
    "TextContent",
    "Signature",
    "Commit",
    "Upstream",
    "Branch",
    "Reference",
    "Tag",
    "Remote",
    "StatusEntry",
    "WalkResult",
    "TreeSource",
    "walk",
    "list_tree",
    "list_index",
    "GitRepository",
    "open_repository",
    "to_json",
)
