'''
The xwit xonsh commands.

Each command opens the repository (`-C DIR`, default `$XWIT_REPO_ROOT`), runs
one browsing operation and prints the result: one line per record, or JSON
with `--json`.

Exit status is 0 on success, 1 when the operation fails with a browsing error
(the message goes to stderr as `xwit: <message>`), and 2 for usage errors.
'''

from argparse import ArgumentParser, Namespace
import json
import sys
from typing import Any, Callable, NoReturn, Optional, TextIO

from xontrib.xwit import vars as xv
from xontrib.xwit.models import Blob
from xontrib.xwit.repository import GitRepository, open_repository
from xontrib.xwit.to_json import to_json
from xontrib.xwit.types import WitError


Operation = Callable[[GitRepository, Namespace], Any]
Alias = Callable[..., int]

_aliases: dict[str, Alias] = {}
'''
The commands, by alias name, registered when the xontrib loads.
'''


class _UsageError(Exception):
    def __init__(self, status: int, message: str = ''):
        super().__init__(message)
        self.status = status
        self.message = message


class _Parser(ArgumentParser):
    '''
    An `ArgumentParser` that reports to the alias's streams and raises
    instead of exiting the shell.
    '''
    out: TextIO = sys.stdout

    def print_help(self, file=None):
        super().print_help(file or self.out)

    def print_usage(self, file=None):
        super().print_usage(file or self.out)

    def exit(self, status: int = 0, message: Optional[str] = None) -> NoReturn:
        raise _UsageError(status, message or '')

    def error(self, message: str) -> NoReturn:
        raise _UsageError(2, f"{self.prog}: {message}")


def _parser(name: str, description: str) -> _Parser:
    parser = _Parser(prog=name, description=description)
    parser.add_argument('-C', dest='repo', metavar='DIR', default=None,
                        help='the repository to browse (default: $XWIT_REPO_ROOT)')
    parser.add_argument('--json', action='store_true',
                        help='print the result as JSON')
    return parser


def _print(result: Any, as_json: bool, stdout: TextIO):
    if as_json:
        print(json.dumps(to_json(result), indent=2, ensure_ascii=False), file=stdout)
        return
    match result:
        case Blob(is_binary=True):
            print(f"{result}: binary content", file=stdout)
        case Blob(text=text):
            stdout.write(text)
        case tuple() | list():
            for item in result:
                print(format(item, ''), file=stdout)
        case _:
            print(format(result, ''), file=stdout)


def command(name: str, description: str,
            configure: Optional[Callable[[ArgumentParser], None]] = None):
    '''
    Decorator to make a browsing operation into a xonsh alias.
    '''
    def decorator(operation: Operation) -> Alias:
        def alias(args: list[str],
                  stdin: Optional[TextIO] = None,
                  stdout: Optional[TextIO] = None,
                  stderr: Optional[TextIO] = None) -> int:
            stdout = stdout or sys.stdout
            stderr = stderr or sys.stderr
            parser = _parser(name, description)
            parser.out = stdout
            if configure is not None:
                configure(parser)
            try:
                ns = parser.parse_args(list(args))
            except _UsageError as ex:
                if ex.message:
                    print(ex.message, file=stderr)
                return ex.status
            try:
                repo = open_repository(ns.repo)
                result = operation(repo, ns)
            except WitError as ex:
                print(f"xwit: {ex.message}", file=stderr)
                return 1
            except ValueError as ex:
                print(f"xwit: {ex}", file=stderr)
                return 2
            _print(result, ns.json, stdout)
            return 0
        alias.__name__ = operation.__name__
        alias.__doc__ = description
        _aliases[name] = alias
        return alias
    return decorator


def _path_arg(parser: ArgumentParser):
    parser.add_argument('path', nargs='?', default='',
                        help='the directory to list (default: the root)')


def _id_arg(parser: ArgumentParser):
    parser.add_argument('id', help='the full id of the blob')


@command('wit-tree', "List a directory of HEAD's tree.", _path_arg)
def wit_tree(repo: GitRepository, ns: Namespace):
    return repo.list_tree(ns.path)


@command('wit-index', "List a directory of the staged index.", _path_arg)
def wit_index(repo: GitRepository, ns: Namespace):
    return repo.list_index(ns.path)


@command('wit-blob', "Show the content of a blob.", _id_arg)
def wit_blob(repo: GitRepository, ns: Namespace):
    return repo.get_blob(ns.id)


@command('wit-branches', "List local and remote-tracking branches.")
def wit_branches(repo: GitRepository, ns: Namespace):
    return repo.list_branches()


@command('wit-tags', "List tags.")
def wit_tags(repo: GitRepository, ns: Namespace):
    return repo.list_tags()


@command('wit-refs', "List all references.")
def wit_refs(repo: GitRepository, ns: Namespace):
    return repo.list_references()


@command('wit-remotes', "List remotes and their URLs.")
def wit_remotes(repo: GitRepository, ns: Namespace):
    return repo.list_remotes()


@command('wit-status', "Show the working-tree status.")
def wit_status(repo: GitRepository, ns: Namespace):
    return repo.list_status()


@command('wit-log', "Show the history reachable from HEAD.")
def wit_log(repo: GitRepository, ns: Namespace):
    return repo.list_commits()


def aliases() -> dict[str, Alias]:
    return dict(_aliases)


def register(xsh) -> list[str]:
    '''
    Install the commands as aliases in a xonsh session.
    '''
    names = []
    for name, alias in _aliases.items():
        xsh.aliases[name] = alias
        names.append(name)
    xv.trace('LOAD', f"Registered {', '.join(names)}")
    return names


def unregister(xsh):
    for name in _aliases:
        if name in xsh.aliases:
            del xsh.aliases[name]
