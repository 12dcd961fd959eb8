import pytest

from taskpipe.task import change_default_backend, get_backend

BACKENDS = 'posix_spawn', 'fork_exec', 'subprocess'


@pytest.fixture(params=BACKENDS)
def backend(request):
    """run the test once per spawn backend, as the default backend"""
    previous = get_backend.default
    change_default_backend(request.param)
    yield request.param
    change_default_backend(previous)


@pytest.fixture
def project(tmp_path, monkeypatch):
    """a working directory with a Sources/ holding one entry and a Tests/ holding three"""
    (tmp_path / 'Sources' / 'Core').mkdir(parents=True)
    for name in 'CoreTests', 'Fixtures', 'README':
        (tmp_path / 'Tests' / name).mkdir(parents=True)
    monkeypatch.chdir(tmp_path)
    return tmp_path
