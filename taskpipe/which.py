"""executable lookup on the search path

>>> resolve('sh').endswith('/sh')
True
>>> find_executable('surely-there-is-no-such-program') is None
True
>>> resolve('surely-there-is-no-such-program')
Traceback (most recent call last):
...
taskpipe.errors.ExecutableNotFound: executable not found: 'surely-there-is-no-such-program'
"""

__all__ = 'find_executable', 'resolve', 'search_path', 'is_executable'

import os
from .errors import ExecutableNotFound


def search_path(path=None):
    """list the directories to search, in order

    path: a string like $PATH, a sequence of directories or None for
          os.environ['PATH'] (or os.defpath if that is unset)

    >>> search_path('/usr/bin:/bin')
    ['/usr/bin', '/bin']
    >>> search_path(['/usr/bin', '', '/bin'])
    ['/usr/bin', '/bin']
    """
    if path is None:
        path = os.environ.get('PATH', os.defpath)
    if isinstance(path, (str, bytes, os.PathLike)):
        path = os.fsdecode(path).split(os.pathsep)
    return [os.fsdecode(d) for d in path if d]


def is_executable(path):
    """True if path is a regular file we are allowed to execute"""
    return os.path.isfile(path) and os.access(path, os.X_OK)


def find_executable(name, path=None):
    """find an executable, or return None

    Names with a path separator are not searched for, they are only checked
    and returned unchanged. Otherwise, each directory of the search path is
    tried in order and the absolute path of the first match is returned.

    >>> find_executable('/bin/sh')
    '/bin/sh'
    >>> find_executable('sh', path='/nonexistent') is None
    True
    """
    name = os.fsdecode(name)
    if os.sep in name or (os.altsep and os.altsep in name):
        return name if is_executable(name) else None
    for directory in search_path(path):
        candidate = os.path.join(directory, name)
        if is_executable(candidate):
            return os.path.abspath(candidate)
    return None


def resolve(name, path=None):
    """same as find_executable(), but raises ExecutableNotFound instead of returning None"""
    found = find_executable(name, path)
    if found is None:
        raise ExecutableNotFound(name, path)
    return found
