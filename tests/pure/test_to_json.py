"""
Tests of the to_json module.
"""

from datetime import datetime, timedelta, timezone
import json

import pytest

from xontrib.xwit.bytetext import ByteText
from xontrib.xwit.ids import ObjectId
from xontrib.xwit.models import (
    BinaryContent, Blob, Branch, Commit, DirectoryNode, ListingResult,
    Signature, StatusEntry, TextContent, TreeEntry,
)
from xontrib.xwit.to_json import JsonDescriber, JsonMaxDepthError, to_json
from xontrib.xwit.types import BranchKind, ObjectKind, StatusFlag


SHA1 = 'a94a8fe5ccb19ba61c4c0873d391e987982fbbd3'


def test_to_json_atoms():
    assert to_json(None) is None
    assert to_json(True) is True
    assert to_json(42) == 42
    assert to_json(4.5) == 4.5
    assert to_json('foo') == 'foo'


def test_to_json_containers():
    assert to_json([1, (2, 3)]) == [1, [2, 3]]
    assert to_json({'x': {'y': 42}}) == {'x': {'y': 42}}


def test_to_json_id_and_text():
    assert to_json(ObjectId(SHA1)) == SHA1
    value = to_json(ByteText(b'bad\xff'))
    assert value == 'bad�'
    assert type(value) is str


def test_to_json_tree_entry():
    entry = TreeEntry(name=ByteText(b'main.ext'), id=ObjectId(SHA1),
                      kind=ObjectKind.BLOB, filemode=0o100644, root='src/')
    assert to_json(entry) == {
        'name': 'main.ext',
        'id': SHA1,
        'kind': 'Blob',
        'filemode': 0o100644,
        'root': 'src/',
    }


def test_to_json_listing():
    listing = ListingResult([DirectoryNode(name='b', path='a/b')])
    assert to_json(listing) == [{'name': 'b', 'path': 'a/b'}]


def test_to_json_blob_text():
    blob = Blob(id=ObjectId(SHA1), short_id='a94a8fe', size=3, is_binary=False,
                content=TextContent(ByteText(b'hi\n')))
    assert to_json(blob) == {
        'id': SHA1,
        'short_id': 'a94a8fe',
        'size': 3,
        'is_binary': False,
        'content': {'Text': 'hi\n'},
    }


def test_to_json_blob_binary():
    blob = Blob(id=ObjectId(SHA1), short_id='a94a8fe', size=3, is_binary=True,
                content=BinaryContent(b'\x00\x01\xff'))
    assert to_json(blob)['content'] == {'Binary': [0, 1, 255]}


def test_to_json_status():
    entry = StatusEntry(path=ByteText(b'x'),
                        status=StatusFlag.INDEX_NEW | StatusFlag.WT_MODIFIED)
    assert to_json(entry) == {
        'path': 'x',
        'status': ['INDEX_NEW', 'WT_MODIFIED'],
        'status_bits': 257,
    }


def test_to_json_branch():
    branch = Branch(kind=BranchKind.LOCAL, name=ByteText(b'refs/heads/main'),
                    shorthand=ByteText(b'main'), target=None)
    assert to_json(branch) == {
        'kind': 'Local',
        'name': 'refs/heads/main',
        'shorthand': 'main',
        'target': None,
        'target_short': '',
        'upstream': None,
    }


def test_to_json_commit_time():
    tz = timezone(timedelta(hours=2))
    sig = Signature(name=ByteText(b'A'), email=ByteText(b'a@example.com'))
    commit = Commit(id=ObjectId(SHA1), short_id='a94a8fe', author=sig,
                    committer=sig, message=ByteText(b'msg\n'),
                    time=datetime(2024, 1, 2, 3, 4, 5, tzinfo=tz))
    data = to_json(commit)
    assert data['time'] == '2024-01-02T03:04:05+02:00'
    assert data['author'] == {'name': 'A', 'email': 'a@example.com'}
    json.dumps(data)


def test_to_json_special_types():
    handlers = {DirectoryNode: lambda x, d: {'dir': x.path}}
    assert to_json(DirectoryNode(name='b', path='a/b'), special_types=handlers) == {'dir': 'a/b'}


def test_to_json_max_depth():
    nested: list = []
    for _ in range(10):
        nested = [nested]
    with pytest.raises(JsonMaxDepthError):
        to_json(nested, max_levels=5)
    assert to_json(nested, describer=JsonDescriber(max_depth=20)) is not None


def test_to_json_unknown_type():
    with pytest.raises(TypeError):
        to_json(object())
