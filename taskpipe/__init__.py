"""taskpipe - spawn, control and wire together external processes

A Task is one external process. It is set up, then started either
synchronously:

>>> Task('true').run_sync()
0

or asynchronously, in which case it is waited on later:

>>> t = Task('sh', '-c', 'exit 3').run_async()
>>> t.finish()
3

Each standard stream can be inherited (the default), discarded (NULL),
connected to a PipeStream or, for outputs, to a LineStream that calls back
once per line:

>>> output = PipeStream()
>>> Task('echo', 'hello', stdout=output).run_sync()
0
>>> output.read_all()
b'hello\\n'

>>> lines = []
>>> Task('printf', 'a\\\\nb\\\\n', stdout=lines.append).run_async().wait().status, lines
(0, ['a', 'b'])

A PipeStream can be written to while the process runs:

>>> input, output = PipeStream(), PipeStream()
>>> sort = Task('sort', stdin=input, stdout=output).run_async()
>>> input.write_line('beta'); input.write_line('alpha'); input.close_write()
5
6
>>> sort.finish(), output.read_all()
(0, b'alpha\\nbeta\\n')

and a PipeStream shared by two Tasks pipes one into the other, with no
copying in this process. Both Tasks have to run at the same time:

>>> connector, output = PipeStream(), PipeStream()
>>> producer = Task('printf', 'x\\\\ny\\\\nxy\\\\n', stdout=connector)
>>> consumer = Task('grep', 'x', stdin=connector, stdout=output)
>>> producer.run_async(); consumer.run_async()
Task(('printf', 'x\\\\ny\\\\nxy\\\\n'), state=running)
Task(('grep', 'x'), state=running)
>>> output.read_all()
b'x\\nxy\\n'

Processes can be signaled:

>>> t = Task('sleep', '10').run_async()
>>> t.suspend(), t.is_running, t.resume(), t.interrupt()
(True, True, True, True)
>>> t.finish()
2

For the common synchronous cases, there are run() and capture():

>>> run('true').status
0
>>> capture('echo', 'hello').stdout
'hello'
>>> capture.bash('echo hello | tr a-z A-Z') | get.stdout
'HELLO'
"""

__version__ = '0.1.0'

from .errors import *  # noqa: F401 F403
from .fd import FD  # noqa: F401
from .line import LineStream  # noqa: F401
from .pipe import PipeStream  # noqa: F401
from .result import *  # noqa: F401 F403
from .stream import *  # noqa: F401 F403
from .task import *  # noqa: F401 F403
from .util import *  # noqa: F401 F403
from .which import find_executable, resolve  # noqa: F401
