"""low-level module for spawning and waiting for processes with subprocess.Popen

It contains three functions, spawn(), wait() and poll()


>>> from tempfile import TemporaryDirectory
>>> with TemporaryDirectory() as dir:
...     with open(f'{dir}/file', 'wb') as file:
...         wait(spawn('/bin/sh', ['sh', '-c', 'echo hello world'], dict(os.environ), streams=dict(stdout=file)))
...     with open(f'{dir}/file') as file:
...         print(file.read(), end='')
...
0
hello world
"""

__all__ = 'spawn', 'wait', 'poll'

import os
from subprocess import Popen
from threading import Lock
from .spawn_util import get_streams, reset_signals, cwd as chdir

spawned = {}
spawned_lock = Lock()


def spawn(executable, argv, env, streams=(), cwd=None):
    streams = dict(get_streams(streams, include_None=True, std_names=True))
    if any(not isinstance(fd, str) for fd in streams):
        raise NotImplementedError("only standard streams are supported with backend='subprocess'")
    with chdir(None):
        popen = Popen(argv, executable=executable, env=env, cwd=cwd, preexec_fn=reset_signals, **streams)
    with spawned_lock:
        spawned[popen.pid] = popen
    return popen.pid


def _lookup(pid):
    with spawned_lock:
        return spawned.get(pid)


def _forget(pid):
    with spawned_lock:
        spawned.pop(pid, None)


def wait(pid):
    popen = _lookup(pid)
    if popen is None:
        from .posix_wait import wait
        return wait(pid)
    returncode = popen.wait()
    _forget(pid)
    return returncode


def poll(pid):
    popen = _lookup(pid)
    if popen is None:
        from .posix_wait import poll
        return poll(pid)
    returncode = popen.poll()
    if returncode is not None:
        _forget(pid)
    return returncode
