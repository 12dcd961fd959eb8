__all__ = 'LineStream',

import logging
import os
from threading import Event, Lock

from .pipe import PipeStream
from .thread import Thread

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1 << 16


class LineStream:
    r"""calls back once per line written into it

    The drain loop runs on its own thread from the moment the LineStream is
    created, so the callback is never called from the caller's thread.

    >>> lines = []
    >>> stream = LineStream(lines.append)
    >>> stream.pipe.write(b'one\ntwo\nthr')
    11
    >>> stream.pipe.write(b'ee')
    2
    >>> stream.close()
    >>> stream.wait()
    3
    >>> lines
    ['one', 'two', 'three']

    Usually, it is handed to a Task as stdout or stderr, in which case the
    Task closes the local copy of the write end and end-of-stream comes when
    the process exits.
    """
    def __init__(self, callback, encoding='utf-8', errors='replace'):
        """start draining

        callback: called with each line (str, without its newline)
        encoding, errors: how lines are decoded
        """
        self.callback = callback
        self.encoding = encoding
        self.errors = errors
        self.pipe = PipeStream()
        self.count = 0
        self._done = Event()
        self._count_lock = Lock()
        self.thread = Thread(self._drain, name=f'lines {callback!r}').start()

    def _dispatch(self, line):
        try:
            self.callback(line.decode(self.encoding, self.errors))
        except Exception:
            logger.exception('line callback failed on %r', line)
        with self._count_lock:
            self.count += 1

    def _drain(self):
        fd = self.pipe.read_fd
        pending = b''
        try:
            while True:
                try:
                    chunk = os.read(fd.fileno(), CHUNK_SIZE)
                except (OSError, ValueError) as e:
                    logger.warning('line source torn down: %s', e)
                    break
                if not chunk:
                    break
                *lines, pending = (pending + chunk).split(b'\n')
                for line in lines:
                    self._dispatch(line)
            if pending:
                self._dispatch(pending)
        finally:
            fd.close()
            self._done.set()
        return self.count

    @property
    def joined(self):
        """True once end-of-stream was seen and every line dispatched"""
        return self._done.is_set()

    def wait(self, timeout=None):
        """block until all lines are dispatched and return how many there were

        Returns None if timeout expires first. Safe to call before, during
        or after the exit of the process writing into it.
        """
        if not self._done.wait(timeout):
            return None
        return self.count

    def close(self):
        """close the write end, unless a Task already did"""
        self.pipe.close_write()

    def __repr__(self):
        return f'{type(self).__name__}({self.callback!r}, count={self.count})'
