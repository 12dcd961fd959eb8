__all__ = 'get_streams', 'cwd', 'reset_signals'

import os
import signal
from contextlib import contextmanager
from threading import Lock

STD_NAMES = 'stdin', 'stdout', 'stderr'

# signals Python (or whoever started it) may ignore that children get back at their defaults
DEFAULT_SIGNALS = tuple(
    sig for sig in (getattr(signal, name, None) for name in ('SIGINT', 'SIGPIPE', 'SIGXFZ', 'SIGXFSZ'))
    if sig is not None
)


def get_streams(streams, include_None=False, std_names=False):
    """normalize stream specifications to (child_fd, stream) pairs

    streams: {child_fd: stream} or {'stdout': stream, ...} or a sequence
             enumerated from 0

    >>> list(get_streams({'stdout': 'x', 2: 'y'}))
    [(1, 'x'), (2, 'y')]
    >>> list(get_streams(['x', None, 'z'], std_names=True))
    [('stdin', 'x'), ('stderr', 'z')]
    """
    items = streams.items() if isinstance(streams, dict) else enumerate(streams)
    for fd, stream in items:
        if isinstance(fd, str):
            fd = STD_NAMES.index(fd)
        if std_names and fd < len(STD_NAMES):
            fd = STD_NAMES[fd]
        if include_None or stream is not None:
            yield fd, stream


def reset_signals():
    """restore default dispositions in a freshly forked child"""
    for sig in DEFAULT_SIGNALS:
        signal.signal(sig, signal.SIG_DFL)


@contextmanager
def cwd(path, locked=True):
    """temporarily changes the working directory

    Threadsafe with respect to other users of cwd() if locked is set
    (default). In the case of launching a child process, the working
    directory of the parent only matters until the child is spawned, so the
    code inside the block should do no more than that.

    A path of None keeps the directory as it is, but still holds the lock,
    so no other thread can change it inside the block.

    >>> here = os.getcwd()
    >>> with cwd('/') as dir: print(dir)
    ...
    /
    >>> os.getcwd() == here
    True
    >>> with cwd(None) as dir: dir == here
    ...
    True
    """
    if locked:
        with cwd.lock:
            with cwd(path, False) as dir:
                yield dir
    elif path is None:
        yield os.getcwd()
    else:
        orig = os.getcwd()
        os.chdir(path)
        try:
            yield os.getcwd()
        finally:
            os.chdir(orig)
cwd.lock = Lock()  # noqa: E305
