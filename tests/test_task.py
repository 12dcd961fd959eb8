import os
import threading
import time

import pytest

from taskpipe import (
    NULL, PIPE, ExecutableNotFound, LineStream, NonZeroExit, PipeStream, SpawnFailure,
    State, Task, capture, connect, run, shell_argv,
)


def test_run(project, backend):
    run('touch', 'file.txt')
    assert (project / 'file.txt').exists()


def test_run_fails_on_non_zero_exit(backend):
    with pytest.raises(NonZeroExit) as info:
        run('sh', '-c', 'exit 4')
    assert info.value.status == 4


def test_capture(project, backend):
    output = capture('ls', 'Sources')
    assert output.stdout == 'Core'
    assert output.stderr == ''
    assert output.status == 0


def test_capture_strips_one_newline_only(backend):
    output = capture('printf', 'out\\n\\n')
    assert output.stdout == 'out\n'


def test_capture_keeps_status_unless_checked(backend):
    output = capture('sh', '-c', 'echo oops >&2; exit 3')
    assert (output.status, output.stdout, output.stderr) == (3, '', 'oops')
    with pytest.raises(NonZeroExit):
        output.check()
    with pytest.raises(NonZeroExit):
        capture.check('sh', '-c', 'exit 3')


def test_bash_run(project, backend):
    run.bash('touch file.txt')
    assert (project / 'file.txt').exists()


def test_bash_capture(project, backend):
    output = capture.bash('ls Sources')
    assert output.stdout == 'Core'
    assert output.stderr == ''


def test_capture_drains_both_streams_at_once(backend):
    script = 'head -c 200000 /dev/zero >&2; head -c 200000 /dev/zero'
    output = capture('sh', '-c', script)
    assert len(output.stdout) == len(output.stderr) == 200000


def test_stdin(backend):
    input, output = PipeStream(), PipeStream()
    task = Task('sort', stdin=input, stdout=output).run_async()
    input.write_line('beta')
    input.write_line('alpha')
    input.close_write()
    assert task.finish() == 0
    assert output.read_all() == b'alpha\nbeta\n'


def test_pipe(project, backend):
    connector, output = PipeStream(), PipeStream()
    ls = Task('ls', 'Tests', stdout=connector)
    grep = Task('grep', 'Core', stdin=connector, stdout=output)
    ls.run_async()
    grep.run_async()
    assert output.read_all() == b'CoreTests\n'
    assert (ls.finish(), grep.finish()) == (0, 0)


def test_pipe_does_not_deadlock_on_large_output(backend):
    upstream = Task('sh', '-c', 'yes line | head -n 200000')
    downstream = upstream.into(Task('wc', '-l', stdout=PIPE))
    downstream.start_all()
    results = downstream.wait_all()
    assert [r.status for r in results] == [0, 0]
    assert int(results[-1].stdout) == 200000


def test_connect_refuses_started_tasks(backend):
    started = Task('true').run_async()
    with pytest.raises(RuntimeError):
        connect(started, Task('cat'))
    started.finish()


def test_current_directory(project, backend):
    output = PipeStream()
    Task('ls', cwd='Sources', stdout=output).run_sync()
    assert output.read_all() == b'Core\n'
    assert os.getcwd() == str(project)


def test_env(backend):
    output = PipeStream()
    echo = Task('sh', '-c', 'echo $MY_VAR', stdout=output)
    echo.env['MY_VAR'] = 'aVal'
    echo.run_sync()
    assert output.read_all() == b'aVal\n'


def test_env_overlays_unless_replaced(backend, monkeypatch):
    monkeypatch.setenv('TASKPIPE_INHERITED', 'yes')
    inherited = capture('sh', '-c', 'echo ${TASKPIPE_INHERITED:-no}', env={'OTHER': '1'})
    replaced = capture('/bin/sh', '-c', 'echo ${TASKPIPE_INHERITED:-no}', env={'OTHER': '1'}, replace_env=True)
    assert (inherited.stdout, replaced.stdout) == ('yes', 'no')


def test_env_changes_after_start_are_ignored(backend):
    task = Task('sh', '-c', 'sleep 0.1; echo ${LATE:-unset}', stdout=PIPE).run_async()
    task.env['LATE'] = 'set'
    assert task.wait().stdout == b'unset\n'
    assert 'LATE' not in task.spec.env


def test_null_streams(backend):
    result = Task('sh', '-c', 'cat; echo gone; echo gone >&2', stdin=NULL, stdout=NULL, stderr=NULL).run_async().wait()
    assert result.status == 0
    assert result.stdout is None and result.stderr is None


def test_stdin_data_larger_than_a_pipe_buffer(backend):
    data = b'x' * (1 << 20)
    result = Task('wc', '-c', stdin=data, stdout=PIPE).run_async().wait()
    assert int(result.stdout) == len(data)


def test_stdin_data_not_read(backend):
    result = Task('true', stdin=b'x' * (1 << 20)).run_async().wait()
    assert result.status == 0


def test_line_stream(project, backend):
    count = 0

    def callback(line):
        nonlocal count
        count += 1

    lines = LineStream(callback)
    task = Task('ls', 'Tests', stdout=lines)
    assert task.run_sync() == 0
    lines.wait()
    assert count == 3


def test_line_stream_order_and_count(backend):
    lines = []
    result = Task('seq', '1', '500', stdout=lines.append).run_async().wait()
    assert result.status == 0
    assert lines == [str(i) for i in range(1, 501)]


def test_line_stream_on_stderr_runs_on_another_thread(backend):
    threads = set()
    stream = LineStream(lambda line: threads.add(threading.current_thread()))
    Task('sh', '-c', 'echo a >&2; echo b >&2', stderr=stream).run_async().wait()
    assert stream.count == 2
    assert threading.current_thread() not in threads


def test_missing_executable(backend):
    lines = LineStream(lambda line: None)
    task = Task('no-such-program-anywhere', stdout=lines)
    with pytest.raises(ExecutableNotFound):
        task.run_async()
    assert task.state is State.NOT_STARTED
    assert lines.wait(timeout=5) == 0


def test_spawn_failure_reports_os_error(backend, tmp_path):
    with pytest.raises(SpawnFailure) as info:
        Task('true', cwd=tmp_path / 'missing').run_async()
    assert info.value.errno is not None
    assert info.value.argv == ('true',)


def test_start_twice(backend):
    task = Task('true').run_async()
    with pytest.raises(RuntimeError):
        task.start()
    assert task.finish() == 0


def test_finish_before_start():
    with pytest.raises(RuntimeError):
        Task('true').finish()


def test_finish_is_idempotent(backend):
    task = Task('sh', '-c', 'exit 5').run_async()
    calls = []
    wait = task.backend.wait

    def counting_wait(pid):
        calls.append(pid)
        return wait(pid)

    task.backend = type('Backend', (), {
        'wait': staticmethod(counting_wait),
        'poll': staticmethod(task.backend.poll),
    })
    assert task.finish() == 5
    assert task.finish() == 5
    assert calls == [task.pid]
    assert not task.is_running
    assert task.state is State.EXITED


def test_concurrent_finish_converges(backend):
    task = Task('sleep', '0.2').run_async()
    codes = []
    threads = [threading.Thread(target=lambda: codes.append(task.finish())) for _ in range(5)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert codes == [0] * 5


def test_signals(backend):
    task = Task('/bin/sleep', '1').run_async()

    assert task.suspend()
    assert task.state is State.SUSPENDED
    time.sleep(2)
    assert task.is_running
    assert task.resume()
    assert task.state is State.RUNNING
    time.sleep(2)
    assert not task.is_running
    assert not task.suspend()
    assert not task.resume()

    task2 = Task('/bin/sleep', '3').run_async()
    assert task2.interrupt()
    assert task2.finish() == 2

    task3 = Task('/bin/sleep', '3').run_async()
    assert task3.terminate()
    assert task3.finish() == 15
    assert not task3.terminate()


def test_resume_only_when_suspended(backend):
    task = Task('sleep', '5').run_async()
    assert not task.resume()
    assert task.suspend()
    assert not task.suspend()
    assert task.terminate()
    assert task.finish() == 15


def test_signals_before_start():
    task = Task('sleep', '5')
    assert not task.is_running
    assert not task.suspend()
    assert not task.interrupt()
    assert not task.terminate()


def test_send_signal_by_name(backend):
    task = Task('sleep', '5').run_async()
    assert task.send_signal('kill')
    assert task.finish() == 9


def test_context_manager(backend):
    output = PipeStream()
    with Task('echo', 'inside', stdout=output) as task:
        assert task.started
    assert task.state is State.EXITED
    assert output.read_all() == b'inside\n'


def test_private_stdin_pipe(backend):
    task = Task('tr', 'a-z', 'A-Z', stdin=PIPE, stdout=PIPE).run_async()
    task.stdin.pipe.write(b'shout')
    task.stdin.pipe.close_write()
    assert task.wait().stdout == b'SHOUT'


def test_context_manager_drains_output_larger_than_a_pipe_buffer(backend):
    lines = []
    with Task('seq', '1', '100000', stdout=PIPE) as task, Task('seq', '1', '2000', stdout=lines.append):
        pass
    assert task.result.stdout.count(b'\n') == 100000
    assert len(lines) == 2000


def test_spawns_without_cwd_keep_the_host_directory(project, backend):
    here = os.getcwd()
    stop = threading.Event()

    def elsewhere():
        while not stop.is_set():
            Task('true', cwd='Sources').run_sync()

    thread = threading.Thread(target=elsewhere)
    thread.start()
    try:
        outputs = {Task('pwd', '-P', stdout=PIPE).run_async().wait().stdout for _ in range(100)}
    finally:
        stop.set()
        thread.join()
    assert outputs == {f'{here}\n'.encode()}


def test_relative_executable_resolves_against_the_host_directory(project, backend):
    script = project / 'Tests' / 'where'
    script.write_text('#!/bin/sh\npwd -P\n')
    script.chmod(0o755)
    stop = threading.Event()

    def elsewhere():
        while not stop.is_set():
            Task('true', cwd='Sources').run_sync()

    thread = threading.Thread(target=elsewhere)
    thread.start()
    try:
        statuses = {Task('./Tests/where', stdout=NULL).run_sync() for _ in range(50)}
    finally:
        stop.set()
        thread.join()
    assert statuses == {0}


def test_shell_is_read_once(monkeypatch):
    monkeypatch.setattr(shell_argv, 'default', 'sh')
    monkeypatch.setenv('TASKPIPE_SHELL', 'zsh')
    assert shell_argv(True, 'echo hi') == ['sh', '-c', 'echo hi']
