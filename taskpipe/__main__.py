import logging
import sys
from doctest import testmod
from . import errors, fd, thread, pipe, line, stream, which, result, task, util, spawn_util, posix_wait
from . import posix_spawn, fork_exec, subprocess

from .task import change_default_backend, get_backend

if '-v' in sys.argv[1:]:
    logging.basicConfig(level=logging.DEBUG, format='%(threadName)s %(name)s: %(message)s')

package = sys.modules[__package__]
failed = 0

print('checking backends...')
for mod in posix_spawn, fork_exec, subprocess:
    print(f'\t{mod.__name__}...')
    failed += testmod(mod).failed
print()

for backend in 'posix_spawn', 'fork_exec', 'subprocess':
    change_default_backend(backend)
    print(f'with backend {get_backend.default.__name__}...')
    for mod in package, errors, fd, thread, pipe, line, stream, which, result, task, util, spawn_util, posix_wait:
        print(f'\t{mod.__name__}...')
        failed += testmod(mod).failed
    print()

sys.exit(1 if failed else 0)
