__all__ = (
    'Task', 'State', 'SpawnSpec', 'connect',
    'get_backend', 'change_default_backend', 'get_signal', 'shell_argv',
)

import logging
import os
import shlex
from dataclasses import dataclass
from enum import Enum
from signal import Signals, SIGCONT, SIGINT, SIGSTOP, SIGTERM
from threading import Lock, RLock
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from .errors import ChannelClosed, SpawnFailure
from .pipe import PipeStream
from .result import Result
from .spawn_util import cwd
from .stream import Kind, PIPE, endpoint  # noqa: F401
from .thread import Thread
from .which import find_executable, resolve

logger = logging.getLogger(__name__)


def get_signal(sig: Signals | int | str) -> Signals:
    """turn a signal number or name (with or without SIG, any case) into a Signals

    >>> get_signal('term'), get_signal('SIGINT'), get_signal(19)
    (<Signals.SIGTERM: 15>, <Signals.SIGINT: 2>, <Signals.SIGSTOP: 19>)
    """
    if isinstance(sig, str):
        sig = sig.upper()
        return Signals[sig if sig.startswith('SIG') else f'SIG{sig}']
    return Signals(sig)


def get_backend(name=None):
    if name == 'subprocess':
        from . import subprocess as backend
        return backend
    if name == 'posix_spawn':
        from . import posix_spawn as backend
        return backend
    if name == 'fork_exec':
        from . import fork_exec as backend
        return backend
    if name == 'default':
        return get_backend.default
    raise ValueError(f'unknown backend: {name}')


if 'TASKPIPE_BACKEND' in os.environ:
    get_backend.default = get_backend(os.environ['TASKPIPE_BACKEND'])
elif hasattr(os, 'posix_spawn'):
    get_backend.default = get_backend('posix_spawn')
else:
    get_backend.default = get_backend('fork_exec')


def change_default_backend(name_or_namespace):
    """set the backend used by Tasks created with backend='default'

    name_or_namespace: a backend name or anything with spawn(), wait() and
                       poll() functions
    """
    if isinstance(name_or_namespace, str):
        get_backend.default = get_backend(name_or_namespace)
    else:
        name_or_namespace.spawn
        name_or_namespace.wait
        name_or_namespace.poll
        get_backend.default = name_or_namespace
    return get_backend.default


def shell_argv(shell, command):
    """build the argv to run command in a shell

    shell: True for shell_argv.default ($TASKPIPE_SHELL when this module was
           imported), or bash, or sh, whichever is found first;
           a str, which is split and gets a '-c' if it is a single token;
           or a sequence, which is used as is

    >>> shell_argv('sh', 'echo hi')
    ['sh', '-c', 'echo hi']
    >>> shell_argv('zsh -ec', 'echo hi')
    ['zsh', '-ec', 'echo hi']
    """
    if shell is True:
        shell = shell_argv.default or ('bash' if find_executable('bash') else 'sh')
    if isinstance(shell, str):
        shell = shlex.split(shell)
        if len(shell) == 1:
            shell.append('-c')
    return [*shell, command]
shell_argv.default = os.environ.get('TASKPIPE_SHELL')  # noqa: E305


class State(Enum):
    NOT_STARTED = 'not started'
    RUNNING = 'running'
    SUSPENDED = 'suspended'
    EXITED = 'exited'


@dataclass(frozen=True)
class SpawnSpec:
    """everything a Task was spawned with, fixed by Task.start()"""
    executable: str
    argv: Tuple[str, ...]
    env: Mapping[str, str]
    cwd: Optional[str] = None


class Task:
    r"""one external process

    A Task is set up first and started later. Until it is started, its
    env, stdin, stdout and stderr can still be changed:

    >>> t = Task('sh', '-c', 'echo $GREETING', stdout=PIPE)
    >>> t.env['GREETING'] = 'hello'
    >>> t.state
    <State.NOT_STARTED: 'not started'>
    >>> t.run_async().wait()
    Result(argv=('sh', '-c', 'echo $GREETING'), status=0, stdout=b'hello\n')
    >>> t.state, t.finish()
    (<State.EXITED: 'exited'>, 0)

    Input can be given as data, which is fed from another thread, so it can
    be larger than a pipe buffer:

    >>> r = Task('wc', '-c', stdin=b'x' * 1234567, stdout=PIPE).run_async().wait()
    >>> int(r.stdout)
    1234567

    A process killed by a signal reports the signal number as its status:

    >>> t = Task('sleep', '10').run_async()
    >>> t.terminate()
    True
    >>> t.finish()
    15
    >>> t.terminate()
    False

    Tasks can be chained, in which case both must run at the same time:

    >>> ls = Task('printf', 'a\\nb\\nc\\n')
    >>> grep = ls.into(Task('grep', '-v', 'b', stdout=PIPE))
    >>> ls.run_async(); grep.run_async()
    Task(('printf', 'a\\nb\\nc\\n'), state=running)
    Task(('grep', '-v', 'b'), state=running)
    >>> [r.status for r in grep.wait_all()], grep.result.stdout
    ([0, 0], b'a\nc\n')
    """
    def __init__(
        self,
        executable, *args,
        stdin=None, stdout=None, stderr=None,
        cwd=None, env=None, replace_env=False, shell=False, backend='default',
    ):
        """set up the task

        executable: program name, looked up on $PATH when it has no slash, or
                    the command line when shell is set
        args:       arguments, passed verbatim
        stdin:      None to inherit, NULL, PIPE, a PipeStream, or bytes/str
                    to feed in
        stdout, stderr: None to inherit, NULL, PIPE, a PipeStream, a
                    LineStream or a callable to call back per line
        cwd:        working directory of the child
        env:        variables to add to (or override in) the inherited environment
        replace_env: if True, env is the whole environment of the child
        shell:      if set, run executable as a command line through a shell;
                    see shell_argv()
        backend:    one of 'default', 'posix_spawn', 'fork_exec' and
                    'subprocess', or a namespace with spawn(), wait(), poll()
        """
        if shell:
            if args:
                raise ValueError('with shell, the whole command line must be a single string')
            executable, *args = shell_argv(shell, executable)
        self.executable = os.fspath(executable)
        self.args = tuple(os.fspath(arg) if isinstance(arg, os.PathLike) else arg for arg in args)
        self.env = dict(env or {})
        self.replace_env = replace_env
        self.cwd = cwd
        self.stdin = endpoint(stdin, input=True)
        self.stdout = endpoint(stdout)
        self.stderr = endpoint(stderr)
        self.backend = get_backend(backend) if isinstance(backend, str) else backend
        self.upstream = None

        self.spec = None
        self.pid = None
        self.status = None
        self.result = None
        self._state = State.NOT_STARTED
        self._state_lock = RLock()
        self._wait_lock = Lock()
        self._feeder = None

    @property
    def argv(self):
        return (self.executable,) + self.args

    @property
    def state(self):
        """the last known state; see is_running for an up-to-date answer"""
        return self._state

    @property
    def started(self):
        return self._state is not State.NOT_STARTED

    @property
    def endpoints(self):
        return self.stdin, self.stdout, self.stderr

    def environment(self):
        """the environment the child gets"""
        env = {} if self.replace_env else dict(os.environ)
        env.update(self.env)
        return env

    def start(self):
        """resolve the executable, wire up the streams and spawn the process

        Raises ExecutableNotFound or SpawnFailure if that does not work out.
        """
        with self._state_lock:
            if self.started:
                raise RuntimeError(f'{self!r} was already started')

            bound = {}
            try:
                with cwd(None) as here:
                    executable = os.path.normpath(os.path.join(here, resolve(self.executable)))
                self.spec = SpawnSpec(
                    executable, self.argv,
                    MappingProxyType(self.environment()),
                    None if self.cwd is None else os.fspath(self.cwd),
                )
                for child_fd, ep in enumerate(self.endpoints):
                    stream = ep.bind(input=child_fd == 0)
                    if stream is not None:
                        bound[child_fd] = stream
                try:
                    self.pid = self.backend.spawn(
                        executable, list(self.spec.argv), dict(self.spec.env), bound, self.spec.cwd,
                    )
                except OSError as e:
                    raise SpawnFailure(e.errno, e.strerror, self.argv) from e
            finally:
                # also on failure, so nobody waits forever on a pipe no process will use
                for child_fd, ep in enumerate(self.endpoints):
                    ep.release(child_fd == 0, bound.get(child_fd))

            self._state = State.RUNNING
            logger.debug('spawned %r as pid %d', self.argv, self.pid)

            if self.stdin.data is not None:
                self._feeder = self.stdin.channel.feed_async(self.stdin.data)
        return self

    def run_async(self):
        """start the task and return it without waiting"""
        return self.start()

    def run_sync(self):
        """start the task, wait for it to exit and return its exit code

        Outputs going to a PipeStream are not read in the meantime, so this
        blocks forever if the process writes more than the pipe can buffer.
        """
        self.start()
        return self.finish()

    def _exited(self, returncode):
        with self._state_lock:
            self.status = -returncode if returncode < 0 else returncode
            self._state = State.EXITED
        logger.debug('pid %d of %r exited with status %d', self.pid, self.argv, self.status)

    def finish(self):
        """block until the process exits and return its exit code

        The process is reaped exactly once; other calls, concurrent or later,
        return the same code. A process killed by a signal reports the
        number of that signal, e.g. 2 for SIGINT and 15 for SIGTERM.
        """
        if self.status is not None:
            return self.status
        if self.pid is None:
            raise RuntimeError(f'{self!r} was never started')
        with self._wait_lock:
            if self.status is None:
                self._exited(self.backend.wait(self.pid))
        return self.status

    @property
    def is_running(self):
        """True if the process was started and has not exited (suspended counts as running)"""
        if self.pid is None or self.status is not None:
            return False
        if not self._wait_lock.acquire(blocking=False):
            # someone is blocked in finish(), which means it has not exited yet
            return True
        try:
            if self.status is None:
                returncode = self.backend.poll(self.pid)
                if returncode is not None:
                    self._exited(returncode)
        finally:
            self._wait_lock.release()
        return self.status is None

    def send_signal(self, sig: Signals | int | str) -> bool:
        """send a signal and report whether it was delivered

        Returns False if the process is not running or the OS refused.
        """
        sig = get_signal(sig)
        if not self.is_running:
            return False
        try:
            os.kill(self.pid, sig)
        except OSError as e:
            logger.debug('could not send %s to pid %d: %s', sig.name, self.pid, e)
            return False
        logger.debug('sent %s to pid %d', sig.name, self.pid)
        return True

    def suspend(self) -> bool:
        """stop a running process"""
        with self._state_lock:
            if self._state is not State.RUNNING or not self.send_signal(SIGSTOP):
                return False
            self._state = State.SUSPENDED
            return True

    def resume(self) -> bool:
        """continue a suspended process"""
        with self._state_lock:
            if self._state is not State.SUSPENDED or not self.send_signal(SIGCONT):
                return False
            self._state = State.RUNNING
            return True

    def _deliver(self, sig):
        with self._state_lock:
            if not self.send_signal(sig):
                return False
            # a stopped process only acts on the signal once continued
            if self._state is State.SUSPENDED and self.send_signal(SIGCONT):
                self._state = State.RUNNING
            return True

    def interrupt(self) -> bool:
        """send SIGINT"""
        return self._deliver(SIGINT)

    def terminate(self) -> bool:
        """send SIGTERM"""
        return self._deliver(SIGTERM)

    def _join_feeder(self):
        if self._feeder is None:
            return
        try:
            self._feeder.join()
        except ChannelClosed:
            logger.debug('%r exited without reading all of its input', self)

    def wait(self):
        """wait for the process and collect what it wrote to PIPE outputs

        Private pipes (stdout=PIPE, stderr=PIPE) are drained at the same time,
        stderr on a helper thread. Line streams are waited on as well, so all
        of their callbacks have run by the time this returns.
        """
        if self.result is not None:
            return self.result
        if not self.started:
            raise RuntimeError(f'{self!r} was never started')

        stdout, stderr = (ep.channel if ep.private else None for ep in self.endpoints[1:])
        stderr_thread = None if stderr is None else Thread(stderr.read_all, name=f'stderr of {self!r}').start()
        stdout = None if stdout is None else stdout.read_all()
        stderr = None if stderr_thread is None else stderr_thread.join()

        status = self.finish()
        self._join_feeder()
        for ep in self.endpoints[1:]:
            if ep.kind is Kind.LINES:
                ep.consumer.wait()

        self.result = Result(self.argv, status, stdout, stderr)
        return self.result

    def into(self, other):
        r"""pipe this task's stdout into other's stdin and return other

        >>> Task('echo', 'abc').into(Task('tr', 'a-z', 'A-Z', stdout=PIPE)).start_all().wait().stdout
        b'ABC\n'
        """
        connect(self, other)
        return other

    def start_all(self):
        """start every task of the chain, upstream first, and return this one"""
        if self.upstream is not None:
            self.upstream.start_all()
        return self.start()

    def wait_all(self):
        """wait on every task of the chain and return their Results, upstream first"""
        previous = None if self.upstream is None else Thread(self.upstream.wait_all).start()
        result = self.wait()
        return (() if previous is None else previous.join()) + (result,)

    def __enter__(self):
        if not self.started:
            self.start()
        return self

    def __exit__(self, exc_type, value, traceback):
        self.wait()

    def __repr__(self):
        return f'{type(self).__name__}({self.argv!r}, state={self._state.value})'


def connect(upstream, downstream):
    """connect upstream's stdout to downstream's stdin through a new PipeStream

    Both tasks must not have been started yet, and must then be run
    asynchronously, since upstream may fill the pipe before downstream
    starts reading it.
    """
    for task in upstream, downstream:
        if task.started:
            raise RuntimeError(f'{task!r} was already started')
    channel = PipeStream()
    upstream.stdout = endpoint(channel)
    downstream.stdin = endpoint(channel, input=True)
    downstream.upstream = upstream
    return channel

