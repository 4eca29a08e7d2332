'''
This file contains fixtures that work with an actual repository.

Repositories are built with the git program from a YAML description in the
`data` directory.
'''

import os
from pathlib import Path
from typing import Any, Optional
from collections.abc import Callable
from dataclasses import dataclass
from yaml import safe_load

import pytest


DATA_DIR = Path(__file__).parent / 'data'

GitRunner = Callable[..., str]


@pytest.fixture()
def f_git() -> GitRunner:
    '''
    Fixture to run git commands.
    '''
    from subprocess import run, PIPE
    from shutil import which
    _git = which('git')
    if _git is None:
        raise ValueError("git is not installed")
    def git(*args, cwd: Optional[Path|str], check=True,
            env: Optional[dict[str, str]] = None, **kwargs):
        if cwd is not None:
            cwd = str(Path(cwd))
        return run([_git, *args],
                   check=check,
                   stdout=PIPE,
                   text=True,
                   env={**os.environ, **(env or {})},
                   cwd=cwd,
                   **kwargs
                ).stdout.rstrip()
    return git


@pytest.fixture()
def f_home(tmp_path, monkeypatch) -> Path:
    '''
    Fixture to make the top of our test directory hierarchy our $HOME,
    so that no personal or system git configuration is seen.
    '''
    from secrets import token_hex

    home_dir = tmp_path / token_hex(8)
    home_dir.mkdir(parents=False, exist_ok=False)
    monkeypatch.setenv('HOME', str(home_dir))
    monkeypatch.setenv('GIT_CONFIG_NOSYSTEM', '1')
    monkeypatch.delenv('XDG_CONFIG_HOME', raising=False)
    for var in ('GIT_DIR', 'GIT_WORK_TREE', 'GIT_INDEX_FILE'):
        monkeypatch.delenv(var, raising=False)
    return home_dir


@pytest.fixture()
def f_testdir(f_home) -> Path:
    '''
    Fixture to create a temporary directory.
    '''
    from secrets import token_hex
    test_path: Path = f_home / token_hex(8)
    test_path.mkdir(parents=False, exist_ok=False)
    return test_path

GIT_CONFIG = '''
[user]
    email =  bogons@bogus.com
    name = Fake Name
[commit]
    gpgsign = false
[tag]
    gpgsign = false
'''

@pytest.fixture()
def f_gitconfig(f_home) -> Path:
    '''
    Fixture to create a gitconfig file.
    '''
    gitconfig = f_home / '.gitconfig'
    with gitconfig.open('w') as f:
        f.write(GIT_CONFIG)
    return gitconfig


def load_metadata(name: str) -> dict[str, Any]:
    with (DATA_DIR / name).with_suffix('.yaml').open(encoding='utf-8') as f:
        return safe_load(f)


def _write(worktree: Path, files: dict[str, str|bytes]) -> list[str]:
    for name, content in files.items():
        path = worktree / name
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_bytes(content.encode('utf-8'))
    return list(files)


def build_repo(metadata: dict[str, Any], worktree: Path, git: GitRunner):
    '''
    Create a repository in `worktree` as described by `metadata`.
    '''
    git('init', '-q', cwd=worktree)
    git('symbolic-ref', 'HEAD', 'refs/heads/main', cwd=worktree)
    for commit in metadata.get('commits', []):
        names = _write(worktree, commit['files'])
        git('add', '--', *names, cwd=worktree)
        date = f"@{commit['time']}"
        git('commit', '-q', '-m', commit['message'], cwd=worktree,
            env={'GIT_AUTHOR_DATE': date, 'GIT_COMMITTER_DATE': date})
    for branch in metadata.get('branches', []):
        git('branch', branch, cwd=worktree)
    tags = metadata.get('tags', {})
    for tag in tags.get('lightweight', []):
        git('tag', tag, cwd=worktree)
    for tag, message in tags.get('annotated', {}).items():
        git('tag', '-a', tag, '-m', message, cwd=worktree)
    for remote, url in metadata.get('remotes', {}).items():
        git('remote', 'add', remote, url, cwd=worktree)
    for tracking in metadata.get('tracking', []):
        git('update-ref', f'refs/remotes/{tracking}', 'HEAD', cwd=worktree)
    if upstream := metadata.get('upstream'):
        git('branch', '-q', f'--set-upstream-to={upstream}', 'main', cwd=worktree)
    if staged := metadata.get('staged'):
        git('add', '--', *_write(worktree, staged), cwd=worktree)
    _write(worktree, metadata.get('modified', {}))
    _write(worktree, metadata.get('untracked', {}))


@dataclass
class RepoFixture:
    path: Path
    '''
    The work tree root.
    '''
    metadata: dict[str, Any]
    git: GitRunner

    @property
    def expect(self) -> dict[str, Any]:
        return self.metadata['expect']

    def run(self, *args) -> str:
        return self.git(*args, cwd=self.path)


@pytest.fixture()
def f_mk_repo(f_testdir, f_gitconfig, f_git) -> Callable[[str], RepoFixture]:
    '''
    Fixture to create test repositories from their YAML descriptions.
    '''
    def mk_repo(name: str) -> RepoFixture:
        metadata = load_metadata(name)
        worktree = f_testdir / name
        worktree.mkdir(parents=False, exist_ok=False)
        build_repo(metadata, worktree, f_git)
        return RepoFixture(path=worktree, metadata=metadata, git=f_git)
    return mk_repo


@pytest.fixture()
def f_repo(f_mk_repo) -> RepoFixture:
    return f_mk_repo('sample_repo')


@pytest.fixture()
def f_bare_repo(f_repo, f_testdir) -> Path:
    '''
    A bare clone of the sample repository.
    '''
    bare = f_testdir / 'bare.git'
    f_repo.git('clone', '-q', '--bare', str(f_repo.path), str(bare), cwd=f_testdir)
    return bare
