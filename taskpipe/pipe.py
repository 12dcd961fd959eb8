__all__ = 'PipeStream',

import logging
import os
from threading import Lock
from types import GeneratorType

from .errors import ChannelClosed
from .fd import FD
from .thread import Thread

logger = logging.getLogger(__name__)


class PipeStream:
    r"""wrapper around os.pipe with one writer and one reader

    >>> p = PipeStream()
    >>> p.write(b'hello ')
    6
    >>> p.write('world')
    5
    >>> p.close_write()
    >>> p.read_all()
    b'hello world'

    Writing after the write end has been closed fails:

    >>> p.write(b'again')
    Traceback (most recent call last):
    ...
    taskpipe.errors.ChannelClosed: [Errno 32] channel closed for writing

    Text mode decodes what is read:

    >>> p = PipeStream(text=True)
    >>> p.write_line('beta'); p.write_line('alpha'); p.close_write()
    5
    6
    >>> list(p)
    ['beta\n', 'alpha\n']

    A PipeStream can be handed to a Task as stdin, stdout or stderr. The
    Task then owns the child's end and the host (or another Task) owns the
    other one.
    """
    def __init__(self, text=False, encoding='utf-8'):
        """initialize the pipe

        text:     if True, read_all(), read_line() and iteration return str
        encoding: used to encode str writes and, in text mode, decode reads
        """
        self.text = text
        self.encoding = encoding
        self.fds = tuple(FD(fd, f'{rw}b') for fd, rw in zip(os.pipe(), 'rw'))
        self.closed_for_write = False
        self._reader = None
        self._write_lock = Lock()

    @property
    def read_fd(self):
        return self.fds[0]

    @property
    def write_fd(self):
        return self.fds[1]

    def write(self, data):
        """write all of data, retrying partial writes

        Blocks while the kernel buffer is full. Raises ChannelClosed if the
        write end was closed or nobody is left to read.
        """
        if isinstance(data, str):
            data = data.encode(self.encoding)
        view = memoryview(data).cast('B')
        with self._write_lock:
            if self.closed_for_write:
                raise ChannelClosed()
            total = 0
            while total < len(view):
                try:
                    total += os.write(self.write_fd.fileno(), view[total:])
                except BrokenPipeError as e:
                    raise ChannelClosed('reader is gone') from e
            return total

    def write_line(self, text):
        """write text followed by a newline"""
        if isinstance(text, bytes):
            return self.write(text + b'\n')
        return self.write(f'{text}\n')

    def close_write(self):
        """half-close: readers see end-of-stream once buffered data is consumed

        Idempotent.
        """
        with self._write_lock:
            if self.closed_for_write:
                return
            self.closed_for_write = True
            self.write_fd.close()
        logger.debug('closed write end of %r', self)

    def feed(self, source):
        """write everything from source, then close the write end

        Beyond bytes-like and str data, a few kinds of source are accepted.

        If source is file-like and has a read() method, it is read:
        >>> f = PipeStream(); g = PipeStream()
        >>> f.feed(b'123'); g.feed(f); g.read_all()
        3
        3
        b'123'

        If source is callable, it is called and its return value written:
        >>> f = PipeStream(); f.feed(lambda: b'123'); f.read_all()
        3
        b'123'

        And generators are written item by item:
        >>> f = PipeStream(); f.feed(str(i) for i in (1, 2, 3)); f.read_all()
        3
        b'123'
        """
        try:
            if isinstance(source, (str, bytes, bytearray, memoryview)):
                return self.write(source)
            if isinstance(source, PipeStream):
                return self.write(source.read_all())
            if callable(getattr(source, 'read', None)):
                return self.write(source.read())
            if isinstance(source, FD):
                with source.open() as stream:
                    return self.write(stream.read())
            if isinstance(source, GeneratorType):
                return sum(self.write(chunk) for chunk in source)
            if callable(source):
                return self.write(source())
            return self.write(memoryview(source))
        finally:
            self.close_write()

    def feed_async(self, source):
        """feed() in a background Thread, which is returned

        This is how more data than the pipe buffer can hold is fed to a
        process without blocking the caller:
        >>> p = PipeStream(); thread = p.feed_async(b'X' * 1234567)
        >>> len(p.read_all()), thread.join()
        (1234567, 1234567)
        """
        return Thread(lambda: self.feed(source), name=f'feed {self!r}').start()

    @property
    def reader(self):
        """buffered binary file object on the read end, opened on first use"""
        if self._reader is None:
            self._reader = self.read_fd.open()
        return self._reader

    def _decode(self, data):
        return data.decode(self.encoding) if self.text else data

    def read_all(self):
        """block until end-of-stream and return everything that was written

        This does not return until every copy of the write end has been
        closed, i.e., by close_write() and by the exit of any process that
        writes to it.
        """
        if self.reader.closed:
            return self._decode(b'')
        data = self.reader.read()
        self.reader.close()
        return self._decode(data)

    def read_line(self):
        """read one line, including its newline; None at end-of-stream"""
        if self.reader.closed:
            return None
        line = self.reader.readline()
        if not line:
            self.reader.close()
            return None
        return self._decode(line)

    def __iter__(self):
        return iter(self.read_line, None)

    def close(self):
        """close both ends"""
        self.close_write()
        if self._reader is not None:
            self._reader.close()
        self.read_fd.close()

    def __repr__(self):
        return f'{type(self).__name__}()<{self.read_fd}, {self.write_fd}>'
