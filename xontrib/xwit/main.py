"""
Loading and unloading the xwit xontrib.

It provides the following commands:
- wit-tree, wit-index: list a directory of HEAD's tree or of the index.
- wit-blob: show a blob's content.
- wit-branches, wit-tags, wit-refs, wit-remotes: list references.
- wit-status: show the working-tree status.
- wit-log: show the history.

`open_repository` is placed into the xonsh context, for browsing from Python.
"""

from typing import Any, MutableMapping

from xonsh.built_ins import XonshSession

from xontrib.xwit import vars as xv
from xontrib.xwit.commands import register, unregister
from xontrib.xwit.repository import GitRepository, open_repository


_exports: dict[str, Any] = {
    'open_repository': open_repository,
    'GitRepository': GitRepository,
}
"""
Values loaded into the xonsh context.
"""


def _load_xontrib_(xsh: XonshSession, **kwargs) -> dict:
    """
    this function will be called when loading/reloading the xontrib.

    Args:
        xsh: the current xonsh session instance.
        **kwargs: it is empty as of now. Kept for future proofing.
    Returns:
        dict: this will get loaded into the current execution context
    """
    env = xsh.env
    assert isinstance(env, MutableMapping),\
        f"XSH.env is not a MutableMapping: {env!r}"
    xv.set_session(xsh)
    if xv.XWIT_REPO_ROOT not in env:
        env[xv.XWIT_REPO_ROOT] = xv.DEFAULTS[xv.XWIT_REPO_ROOT]
    register(xsh)
    prompt_fields = env.get('PROMPT_FIELDS')
    if isinstance(prompt_fields, MutableMapping):
        prompt_fields['xwit.version'] = xv.xwit_version
    xv.trace('LOAD', f"Loaded xontrib-xwit {xv.xwit_version()}")
    return dict(_exports)


def _unload_xontrib_(xsh: XonshSession, **kwargs) -> dict:
    """Clean up on unload."""
    env = xsh.env
    assert isinstance(env, MutableMapping),\
        f"XSH.env is not a MutableMapping: {env!r}"
    xv.trace('LOAD', "Unloading xontrib-xwit")
    unregister(xsh)
    prompt_fields = env.get('PROMPT_FIELDS')
    if isinstance(prompt_fields, MutableMapping) and 'xwit.version' in prompt_fields:
        del prompt_fields['xwit.version']
    xv.set_session(None)
    return dict()
