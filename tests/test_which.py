import os

import pytest

from taskpipe import ExecutableNotFound, SpawnFailure, capture, find_executable, resolve


def test_resolve_ls_matches_direct_invocation(project):
    path = resolve('ls')
    assert os.path.isabs(path)
    assert os.access(path, os.X_OK)
    assert capture(path, 'Sources').stdout == capture('ls', 'Sources').stdout == 'Core'


def test_search_is_in_path_order(tmp_path):
    first, second = tmp_path / 'first', tmp_path / 'second'
    for directory in first, second:
        directory.mkdir()
        program = directory / 'tool'
        program.write_text('#!/bin/sh\n')
        program.chmod(0o755)
    path = os.pathsep.join([str(first), str(second)])
    assert find_executable('tool', path) == str(first / 'tool')
    assert find_executable('tool', [str(second), str(first)]) == str(second / 'tool')


def test_non_executable_files_are_skipped(tmp_path):
    (tmp_path / 'data').write_text('')
    assert find_executable('data', str(tmp_path)) is None
    assert find_executable(str(tmp_path / 'data')) is None


def test_paths_are_only_checked(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    program = tmp_path / 'local'
    program.write_text('#!/bin/sh\n')
    program.chmod(0o755)
    assert find_executable('./local') == './local'
    assert find_executable('local', path='') is None


def test_not_found_is_a_spawn_failure():
    with pytest.raises(ExecutableNotFound) as info:
        resolve('no-such-program-anywhere', path='/nonexistent')
    assert isinstance(info.value, SpawnFailure)
    assert info.value.name == 'no-such-program-anywhere'
