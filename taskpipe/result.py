__all__ = 'Result', 'NonZeroExit'


class ResultBase:
    def __init__(self, argv, status, stdout=None, stderr=None):
        self.argv = argv
        self.status = status
        self.stdout = stdout
        self.stderr = stderr

    def __repr__(self):
        param_str = ', '.join(
            f'{n}={repr(a)}'
            for n, a in vars(self).items()
            if a is not None
        )
        return f'{type(self).__name__}({param_str})'

    def __str__(self):
        return repr(self)

    def __iter__(self):
        return iter((self.argv, self.status, self.stdout, self.stderr))

    def __eq__(self, other):
        if not isinstance(other, ResultBase):
            return NotImplemented
        return tuple(self) == tuple(other)

    __hash__ = None


class Result(ResultBase):
    """the result after waiting on a Task

    status is the exit code, or the number of the signal that killed the
    process; the two cannot be told apart.

    >>> Result(('true',), 0).check()
    Result(argv=('true',), status=0)
    >>> Result(('false',), 1).check()
    Traceback (most recent call last):
    ...
    taskpipe.result.NonZeroExit: ('false',) exited with status 1
    """
    @property
    def ok(self):
        return self.status == 0

    def check(self):
        """raise NonZeroExit if status != 0"""
        if self.status != 0:
            raise NonZeroExit(*self)
        return self

    def die(self):
        """exit with status if status != 0"""
        from sys import stderr, exit
        if self.status == 0:
            return self
        if self.stderr is not None:
            stderr.write(self.stderr if isinstance(self.stderr, str) else self.stderr.decode(errors='replace'))
        exit(self.status)


class NonZeroExit(ResultBase, Exception):
    """the result as an error, usually raised if a result.status != 0"""
    def __init__(self, argv, status, stdout=None, stderr=None):
        ResultBase.__init__(self, argv, status, stdout, stderr)
        Exception.__init__(self, argv, status)

    def __str__(self):
        return f'{self.argv!r} exited with status {self.status}'

    __hash__ = Exception.__hash__
