__all__ = 'wait', 'poll', 'returncode'

import os


def returncode(status):
    """turn a waitpid() status into a subprocess-style return code

    >>> returncode(7 << 8)
    7
    >>> returncode(15)
    -15
    """
    if os.WIFSIGNALED(status):
        return -os.WTERMSIG(status)
    if os.WIFEXITED(status):
        return os.WEXITSTATUS(status)
    raise RuntimeError(f'weird exit status: {hex(status)}')


def wait(pid):
    """wait on a pid to complete and return its exit status"""
    pid_, status = os.waitpid(pid, 0)
    if pid_ != pid:
        raise RuntimeError(f'pid is {pid_}, expected {pid}')
    return returncode(status)


def poll(pid):
    """return the exit status of pid if it has exited, or None if it is still around"""
    pid_, status = os.waitpid(pid, os.WNOHANG)
    if pid_ == 0:
        return None
    if pid_ != pid:
        raise RuntimeError(f'pid is {pid_}, expected {pid}')
    return returncode(status)
