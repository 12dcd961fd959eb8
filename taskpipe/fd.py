__all__ = 'FD',

import os
from errno import EBADF


class FD:
    """file descriptor wrapper

    A glorified integer with a close() method that only closes once.

    >>> r, w = os.pipe()
    >>> rfd, wfd = FD(r, 'rb'), FD(w, 'wb')
    >>> with wfd.open() as file: file.write(b'test')
    ...
    4
    >>> wfd.closed
    True
    >>> with rfd.open() as file: file.read()
    ...
    b'test'
    """
    def __init__(self, fd, mode='rb'):
        self.fd = int(fd)
        self.mode = mode
        self._closed = False

    def fileno(self):
        if self._closed:
            raise ValueError(f'{self!r} is closed')
        return self.fd

    def open(self, closefd=True):
        """open a file object on top of the descriptor

        With closefd=True (the default), the file object owns the descriptor
        and closing it marks this FD as closed.
        """
        file = open(self.fileno(), self.mode, closefd=closefd)
        if closefd:
            self._closed = True
        return file

    def close(self, invalid_ok=True):
        if self._closed:
            return
        self._closed = True
        try:
            os.close(self.fd)
        except OSError as e:
            if not invalid_ok or e.errno != EBADF:
                raise

    @property
    def closed(self):
        return self._closed

    def __repr__(self):
        return f'{type(self).__name__}({self.fd}, {repr(self.mode)})'

    def __int__(self):
        return self.fileno()
