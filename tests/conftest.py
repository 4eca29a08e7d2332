from contextlib import contextmanager
from threading import Lock, RLock
from types import ModuleType as Module
from typing import Any, Callable, NamedTuple, TypeAlias
from collections.abc import Generator

import pytest
from xonsh.built_ins import XonshSession


@pytest.fixture(autouse=True)
def f_debug_env(monkeypatch):
    monkeypatch.setenv("XWIT_TRACE_LOAD", "1")
    monkeypatch.setenv("XWIT_TRACE_COMMANDS", "1")
    monkeypatch.setenv("XWIT_TRACE_LISTING", "1")
    monkeypatch.setenv("XONSH_SHOW_TRACEBACK", "1")


Loader: TypeAlias = Callable[[XonshSession], dict[str, Any]]

class XontribModule(NamedTuple):
    XSH: XonshSession
    module: Module
    load: Loader|None
    unload: Loader|None
    exports: dict[str, Any]

@contextmanager
def session_active(module, xonsh_session,
                   ) -> Generator[XontribModule, None, None]:
    '''
    Context manager to load and unload a xontrib module.
    '''
    _load = None
    _unload = None
    if '_load_xontrib_' in module.__dict__:
        _load = module._load_xontrib_

    if '_unload_xontrib_' in module.__dict__:
        _unload = module._unload_xontrib_
    exports: dict[str, Any] = {}
    if _load is not None:
        exports = _load(xonsh_session)
    try:
        yield XontribModule(
            XSH=xonsh_session,
            module=module,
            load=_load,
            unload=_unload,
            exports=exports)
    finally:
        if _unload is not None:
            _unload(xonsh_session)

@pytest.fixture()
def with_xwit(xonsh_session):
    import xontrib.xwit as xwit
    with session_active(xwit, xonsh_session) as xontrib_module:
        yield xontrib_module


CWD_LOCK = RLock()
@pytest.fixture()
def f_chdir():
    '''
    Change the working directory for the duration of the test.
    Locks to prevent simultaneous changes.
    '''
    from pathlib import Path
    import os
    def chdir(path) -> Path:
        path = Path(path)
        os.chdir(path)
        return path

    with CWD_LOCK:
        old = Path.cwd()
        try:
            yield chdir
        finally:
            os.chdir(old)


_test_lock: Lock = Lock()
@pytest.fixture(scope='session')
def test_lock():
    '''
    Fixture to lock tests that cannot be run in parallel.
    '''
    yield _test_lock
