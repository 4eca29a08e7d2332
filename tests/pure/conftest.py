'''
Fixtures for pure tests: no git, no xonsh session.
'''

from collections.abc import Iterable

import pytest

from xontrib.xwit.ids import ObjectId
from xontrib.xwit.models import IndexEntry, TreeEntry
from xontrib.xwit.types import ObjectKind


@pytest.fixture(autouse=True, scope='package')
def lock_out_impure(test_lock):
    '''
    Lock out impure tests from running.
    '''
    with test_lock:
        yield


def oid(n: int) -> ObjectId:
    '''
    A distinct, well-formed id for test data.
    '''
    return ObjectId(f'{n:040x}')


class FakeTreeSource:
    '''
    A `TreeSource` over nested dicts: a dict is a tree, anything else a blob.
    Records which trees were listed.
    '''
    def __init__(self, root: dict):
        self.trees: dict[ObjectId, dict] = {}
        self.count = 0
        self.calls: list[ObjectId] = []
        self.root = self._add(root)

    def _next_id(self) -> ObjectId:
        self.count += 1
        return oid(self.count)

    def _add(self, tree: dict) -> ObjectId:
        id = self._next_id()
        self.trees[id] = tree
        return id

    def children(self, tree: ObjectId, root: str = '') -> Iterable[TreeEntry]:
        self.calls.append(tree)
        result = []
        for name, value in self.trees[tree].items():
            if isinstance(value, dict):
                entry_id = self._add(value)
                kind, mode = ObjectKind.TREE, 0o040000
            else:
                entry_id = self._next_id()
                kind, mode = ObjectKind.BLOB, 0o100644
            result.append(TreeEntry(name=name, id=entry_id, kind=kind,
                                    filemode=mode, root=root))
        return result


@pytest.fixture()
def f_oid():
    return oid


@pytest.fixture()
def f_tree_source():
    '''
    Build a fake tree source from nested dicts.
    '''
    return FakeTreeSource


@pytest.fixture()
def f_index():
    '''
    Build index entries from paths.
    '''
    def index(*paths: str) -> list[IndexEntry]:
        return [IndexEntry(path=p, id=oid(i + 1), mode=0o100644)
                for i, p in enumerate(paths)]
    return index
