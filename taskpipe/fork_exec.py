"""low-level module for spawning and waiting for processes with os.fork and os.exec

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

Failures to launch are reported in the parent:

>>> spawn('/nonexistent', ['nonexistent'], os.environ)
Traceback (most recent call last):
...
FileNotFoundError: [Errno 2] No such file or directory
"""

__all__ = 'spawn', 'wait', 'poll'

import os
from .pipe import PipeStream
from .posix_wait import wait, poll
from .spawn_util import get_streams, reset_signals, cwd as chdir

EXEC_FAILED = 127


def spawn(executable, argv, env, streams=(), cwd=None):
    """fork, set up the child and exec executable in it; return its pid"""
    streams = [(child_fd, stream.fileno()) for child_fd, stream in get_streams(streams)]
    launch_pipe = PipeStream()

    # the child inherits the directory of the parent, which must not be moving
    with chdir(None):
        pid = os.fork()
    if pid:
        launch_pipe.close_write()
        error = launch_pipe.read_all()
        launch_pipe.close()
        if error:
            wait(pid)
            errno, strerror = error.decode().split('\n', maxsplit=1)
            raise OSError(int(errno), strerror)
        return pid

    try:
        reset_signals()
        for child_fd, fd in streams:
            os.dup2(fd, child_fd)
        if cwd is not None:
            os.chdir(cwd)
        os.execve(executable, argv, env)
    except Exception as e:
        errno = getattr(e, 'errno', None) or 0
        strerror = getattr(e, 'strerror', None) or str(e)
        launch_pipe.write(f'{errno}\n{strerror}'.encode())
    finally:
        os._exit(EXEC_FAILED)
