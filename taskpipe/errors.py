__all__ = 'SpawnFailure', 'ExecutableNotFound', 'ChannelClosed'

from errno import ENOENT, EPIPE


class SpawnFailure(OSError):
    """the OS refused to create the process

    errno and strerror are those of the underlying OSError, and argv is
    the command line that was being spawned.
    """
    def __init__(self, errno, strerror, argv=None):
        super().__init__(errno, strerror)
        self.argv = argv

    def __str__(self):
        text = super().__str__()
        return text if self.argv is None else f'{text}: {self.argv!r}'


class ExecutableNotFound(SpawnFailure):
    """no executable by that name exists on the search path"""
    def __init__(self, name, path=None):
        super().__init__(ENOENT, f'executable not found: {name!r}')
        self.name = name
        self.path = path

    def __str__(self):
        return self.strerror


class ChannelClosed(BrokenPipeError):
    """write on a pipe whose write end was closed or whose reader is gone"""
    def __init__(self, strerror='channel closed for writing'):
        super().__init__(EPIPE, strerror)
