"""where a Task's standard streams are connected

Every standard stream of a Task is described by an Endpoint, which is one of
four kinds:

>>> endpoint(None)
Endpoint(kind=<Kind.INHERIT: 'inherit'>)
>>> endpoint(NULL)
Endpoint(kind=<Kind.NULL: 'null'>)
>>> endpoint(PIPE).kind, endpoint(PIPE).private
(<Kind.PIPE: 'pipe'>, True)
>>> lines = LineStream(print); endpoint(lines).kind
<Kind.LINES: 'lines'>
>>> lines.close()

Line streams only make sense for outputs:

>>> endpoint(print, input=True)
Traceback (most recent call last):
...
ValueError: a LineStream can only be used for stdout or stderr
"""

__all__ = 'Kind', 'Endpoint', 'INHERIT', 'NULL', 'PIPE', 'endpoint'

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .fd import FD
from .line import LineStream
from .pipe import PipeStream

PIPE = -1
NULL = -3


class Kind(Enum):
    INHERIT = 'inherit'
    NULL = 'null'
    PIPE = 'pipe'
    LINES = 'lines'


@dataclass(frozen=True)
class Endpoint:
    kind: Kind
    channel: Optional[PipeStream] = field(default=None, repr=False)
    consumer: Optional[LineStream] = field(default=None, repr=False)
    # PIPE endpoints created for the Task itself, which drains them in Task.wait()
    private: bool = field(default=False, repr=False)
    data: object = field(default=None, repr=False)

    def bind(self, input):
        """return what the child's stream should be dup'ed from, or None to inherit

        input: True for stdin, False for stdout and stderr
        """
        if self.kind is Kind.INHERIT:
            return None
        if self.kind is Kind.NULL:
            return FD(os.open(os.devnull, os.O_RDONLY if input else os.O_WRONLY), 'rb' if input else 'wb')
        if self.kind is Kind.PIPE:
            return self.channel.read_fd if input else self.channel.write_fd
        if self.kind is Kind.LINES:
            return self.consumer.pipe.write_fd
        raise ValueError(f'unknown endpoint kind: {self.kind}')

    def release(self, input, bound):
        """close the local copy of the child's end after spawning

        bound: whatever bind() returned, or None if it was never bound
        """
        if self.kind is Kind.NULL:
            if bound is not None:
                bound.close()
        elif self.kind is Kind.PIPE:
            if input:
                self.channel.read_fd.close()
            else:
                self.channel.close_write()
        elif self.kind is Kind.LINES:
            self.consumer.close()

    @property
    def pipe(self):
        """the PipeStream the host reads from or writes to, if any"""
        if self.kind is Kind.PIPE:
            return self.channel
        if self.kind is Kind.LINES:
            return self.consumer.pipe
        return None


INHERIT = Endpoint(Kind.INHERIT)


def endpoint(stream, input=False):
    """coerce something into an Endpoint

    stream: None to inherit, NULL to discard, PIPE for a new private
            PipeStream, a PipeStream to share, a LineStream or a callable to
            call back per line, or (input only) bytes or str to feed in
    input:  True when describing stdin
    """
    if stream is None:
        return INHERIT
    if isinstance(stream, Endpoint):
        kind = stream.kind
        if input and kind is Kind.LINES:
            raise ValueError('a LineStream can only be used for stdout or stderr')
        return stream
    if isinstance(stream, int) and not isinstance(stream, bool):
        if stream == NULL:
            return Endpoint(Kind.NULL)
        if stream == PIPE:
            return Endpoint(Kind.PIPE, channel=PipeStream(), private=True)
        raise ValueError(f'not sure how to use {stream!r}; use PIPE, NULL or None')
    if isinstance(stream, PipeStream):
        return Endpoint(Kind.PIPE, channel=stream)
    if isinstance(stream, (str, bytes, bytearray, memoryview)):
        if not input:
            raise ValueError('data can only be fed to stdin')
        return Endpoint(Kind.PIPE, channel=PipeStream(), private=True, data=stream)
    if isinstance(stream, LineStream) or callable(stream):
        if input:
            raise ValueError('a LineStream can only be used for stdout or stderr')
        consumer = stream if isinstance(stream, LineStream) else LineStream(stream)
        return Endpoint(Kind.LINES, consumer=consumer)
    raise ValueError(f'not sure how to use {stream!r} of type {type(stream)}')
