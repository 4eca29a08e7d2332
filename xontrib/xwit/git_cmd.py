'''
Running the git program.

`_GitCmd` is the mixin the object store is built on. Every command runs in
the repository it was created for, with output captured as bytes: names and
paths in a repository are not guaranteed to be UTF-8, so decoding is left to
the callers.

Failures are reported with the backend's own exception types, defined here.
They are translated into the public taxonomy by `GitRepository`.
'''

from pathlib import Path
from subprocess import run, PIPE, CompletedProcess
import os
import shutil
from typing import Optional, Sequence

from xontrib.xwit import vars as xv


class GitStoreError(Exception):
    '''
    Base class of the errors raised by the git backend.
    '''


class GitCommandError(GitStoreError):
    '''
    A git command exited with a non-zero status.
    '''
    argv: tuple[str, ...]
    returncode: int
    stderr: bytes
    def __init__(self, argv: Sequence[str], returncode: int, stderr: bytes):
        self.argv = tuple(argv)
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(self.diagnostic)

    @property
    def diagnostic(self) -> str:
        msg = self.stderr.decode('utf-8', 'replace').strip()
        cmdline = ' '.join(self.argv)
        return f"git exited with status {self.returncode}: {msg or '(no output)'} [{cmdline}]"


_SCRUBBED_ENV = (
    'GIT_DIR',
    'GIT_WORK_TREE',
    'GIT_INDEX_FILE',
    'GIT_OBJECT_DIRECTORY',
    'GIT_ALTERNATE_OBJECT_DIRECTORIES',
    'GIT_COMMON_DIR',
    'GIT_NAMESPACE',
    'GIT_CEILING_DIRECTORIES',
)
'''
Variables that would point git somewhere other than the repository we opened.
'''


def git_executable() -> str:
    '''
    Locate the git program: `$XWIT_GIT`, else `git` on the `PATH`.
    '''
    git = xv.setting(xv.XWIT_GIT) or shutil.which("git")
    if not git:
        raise GitStoreError("git command not found")
    return str(git)


class _GitCmd:
    """
    Runs git commands against one repository location.
    """
    __path: Path
    __git: str
    __env: dict[str, str]
    __global_args: tuple[str, ...]

    def __init__(self, path: Path,
                 git_dir: Optional[Path] = None,
                 work_tree: Optional[Path] = None,
                 ceiling: Optional[Path] = None):
        self.__path = path
        self.__git = git_executable()
        env = {k: v for k, v in os.environ.items() if k not in _SCRUBBED_ENV}
        env['GIT_OPTIONAL_LOCKS'] = '0'
        env['GIT_TERMINAL_PROMPT'] = '0'
        env['LC_ALL'] = 'C'
        if ceiling is not None:
            env['GIT_CEILING_DIRECTORIES'] = str(ceiling)
        self.__env = env
        global_args: list[str] = ['-c', 'core.quotePath=false']
        if git_dir is not None:
            global_args.append(f'--git-dir={git_dir}')
        if work_tree is not None:
            global_args.append(f'--work-tree={work_tree}')
        self.__global_args = tuple(global_args)

    def run(self, subcmd: str, *args,
            input: Optional[bytes] = None,
            check: bool = True) -> CompletedProcess:
        '''
        Run a git subcommand and capture its output as bytes.

        RAISES
        ------
        GitCommandError
            if `check` is set and git exits with a non-zero status.
        GitStoreError
            if git could not be started.
        '''
        argv = [self.__git, *self.__global_args, subcmd, *(str(a) for a in args)]
        xv.trace('COMMANDS', f"Running {' '.join(argv)}")
        try:
            proc = run(argv,
                       cwd=self.__path,
                       env=self.__env,
                       input=input,
                       stdout=PIPE,
                       stderr=PIPE,
                       check=False)
        except OSError as ex:
            raise GitStoreError(f"Could not run {argv[0]}: {ex}") from ex
        if check and proc.returncode != 0:
            raise GitCommandError(argv, proc.returncode, proc.stderr)
        return proc

    def git_binary(self, subcmd: str, *args, **kwargs) -> bytes:
        '''
        Run a git command and return the output as bytes.
        '''
        return self.run(subcmd, *args, **kwargs).stdout

    def git(self, subcmd: str, *args, **kwargs) -> str:
        '''
        Run a git command and return the output as stripped text.
        Only for output that is known to be ASCII (ids, flags).
        '''
        return self.git_binary(subcmd, *args, **kwargs).decode('utf-8', 'replace').strip()

    def git_lines(self, subcmd: str, *args, **kwargs) -> list[bytes]:
        return self.git_binary(subcmd, *args, **kwargs).splitlines()

    def git_records(self, subcmd: str, *args, **kwargs) -> list[bytes]:
        '''
        Run a git command whose output is NUL-terminated (`-z`) and
        return the records.
        '''
        data = self.git_binary(subcmd, *args, **kwargs)
        records = data.split(b'\0')
        if records and records[-1] == b'':
            records.pop()
        return records
