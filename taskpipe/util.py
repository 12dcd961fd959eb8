r"""synchronous shortcuts on top of Task

>>> capture('echo', 'abc')
Result(argv=('echo', 'abc'), status=0, stdout='abc', stderr='')
>>> capture.bash('echo abc; echo def >&2') | get.stderr
'def'
>>> run('true')
Result(argv=('true',), status=0)
>>> run.bash('exit 3')
Traceback (most recent call last):
...
taskpipe.result.NonZeroExit: ('bash', '-c', 'exit 3') exited with status 3

capture() does not fail on its own; that is up to the caller:

>>> capture('false').status
1
>>> capture('false') | check
Traceback (most recent call last):
...
taskpipe.result.NonZeroExit: ('false',) exited with status 1
"""

__all__ = (
    'to', 'now', 'get', 'Arguments',
    'task', 'wait', 'finish', 'check', 'die', 'run', 'capture', 'chomp',
)

from funcpipes import Pipe, to, now, get, Arguments
from .result import Result
from .stream import PIPE
from .task import Task


def chomp(output, encoding='utf-8'):
    r"""decode output and drop at most one trailing newline

    >>> chomp(b'a\n\n'), chomp('a'), chomp(None)
    ('a\n', 'a', None)
    """
    if output is None:
        return None
    if isinstance(output, bytes):
        output = output.decode(encoding, 'replace')
    return output[:-1] if output.endswith('\n') else output


@Pipe
def task(*args, **kwargs):
    """creates a Task and starts it, see help(Task)"""
    return Task(*args, **kwargs).run_async()


wait = to.wait
finish = to.finish
check = to.check
die = to.die
run = task & wait & check


@Pipe
def capture(*args, **kwargs):
    """run a Task to completion with private pipes on stdout and stderr

    Both are decoded and lose one trailing newline. The status is in the
    Result and nothing is raised for a non-zero one; use capture.check()
    or `| check` for that.
    """
    kwargs.setdefault('stdout', PIPE)
    kwargs.setdefault('stderr', PIPE)
    result = Task(*args, **kwargs).run_async().wait()
    return Result(result.argv, result.status, chomp(result.stdout), chomp(result.stderr))


capture.check = capture & check

for func in task, run, capture, capture.check:
    func.bash = func.partial(shell=True)
    func.sh = func.partial(shell='sh')
