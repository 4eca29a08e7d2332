'''
Shared settings for xwit.

Settings are environment variables. When the xontrib is loaded they are read
from the xonsh session's environment (`XSH.env`), otherwise from the process
environment, so the library works the same outside of xonsh.

The `XonshSession` object is stored in a `ContextLocal`, permitting separate
sessions for different contexts, e.g. different threads or asyncio tasks.
Note that the `extracontext` module handles async tasks and generators,
avoiding the issue with threading.ContextVar, which is not inherited to new
threads. A thread that never saw a session falls back to `os.environ`.
'''

from contextlib import suppress
from typing import Any, Mapping, Optional
import os
import sys

from extracontext import ContextLocal
from xonsh.built_ins import XonshSession
from xonsh.tools import to_bool


XWIT_REPO_ROOT = 'XWIT_REPO_ROOT'
'''
The repository the xonsh commands open when no `-C` option is given.
'''
XWIT_GIT = 'XWIT_GIT'
'''
The git executable to run. Defaults to `git` on the `PATH`.
'''

TRACE_FLAGS = ('COMMANDS', 'LISTING', 'LOAD')
'''
The kinds of trace output, each enabled by `XWIT_TRACE_<KIND>`.
'''

DEFAULTS: dict[str, Any] = {
    XWIT_REPO_ROOT: '.',
    XWIT_GIT: '',
    **{f'XWIT_TRACE_{k}': False for k in TRACE_FLAGS},
}

_CONTEXT = ContextLocal()
'''
Holds the current `XonshSession` as the attribute `XSH`.
'''


def session() -> Optional[XonshSession]:
    '''
    The xonsh session for this context, if the xontrib is loaded.
    '''
    return getattr(_CONTEXT, 'XSH', None)


def set_session(xsh: Optional[XonshSession]):
    if xsh is None:
        with suppress(AttributeError):
            del _CONTEXT.XSH
        return
    _CONTEXT.XSH = xsh


def env() -> Mapping[str, Any]:
    '''
    The environment settings are read from.
    '''
    xsh = session()
    if xsh is not None and xsh.env is not None:
        return xsh.env
    return os.environ


def setting(name: str, default: Any = None) -> Any:
    '''
    Read a setting, falling back to `DEFAULTS`, then to `default`.
    '''
    value = env().get(name)
    if value is None or value == '':
        if default is None:
            return DEFAULTS.get(name)
        return default
    return value


def flag(name: str) -> bool:
    '''
    Read a boolean setting. Accepts the spellings xonsh accepts
    ('1', 'yes', 'true', ...).
    '''
    value = setting(name, False)
    if isinstance(value, bool):
        return value
    return to_bool(value)


def trace(kind: str, message: str, /):
    '''
    Write a trace line to stderr if `XWIT_TRACE_<kind>` is set.
    '''
    if flag(f'XWIT_TRACE_{kind}'):
        print(f'xwit: {message}', file=sys.stderr)


def repo_root() -> str:
    return str(setting(XWIT_REPO_ROOT))


_xwit_version: str = ""
def xwit_version():
    """
    Return the version of xwit.
    """
    global _xwit_version
    if _xwit_version:
        return _xwit_version
    from importlib.metadata import version, PackageNotFoundError
    try:
        _xwit_version = version("xontrib-xwit")
    except PackageNotFoundError:
        _xwit_version = "unknown"
    return _xwit_version
