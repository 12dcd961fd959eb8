"""low-level module for spawning and waiting for processes with posix_spawn

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
from .posix_wait import wait, poll
from .spawn_util import get_streams, cwd as chdir, DEFAULT_SIGNALS


def spawn(executable, argv, env, streams=(), cwd=None):
    """spawn a process and return its pid

    executable: path to the program; argv[0] is only what the program sees
    env:        the complete environment of the child
    streams:    {child_fd: file-like or FD} to dup into the child
    cwd:        working directory of the child; posix_spawn has no way to
                set it, so the parent changes directory around the call

    >>> from time import time
    >>> start = time(); pid = spawn('/bin/sleep', ['sleep', '0.2'], os.environ); wait(pid); print(round(time() - start, 1))
    0
    0.2
    """
    file_actions = [
        (os.POSIX_SPAWN_DUP2, stream.fileno(), child_fd)
        for child_fd, stream in get_streams(streams)
    ]
    with chdir(cwd):
        return os.posix_spawn(
            executable, argv, env,
            file_actions=file_actions,
            setsigdef=DEFAULT_SIGNALS,
        )
