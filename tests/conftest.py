import os
import sys
from pathlib import Path

import django
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'replicaboot.settings')
django.setup()

from tests.fakes import FakeDumper, FakeLoader, FakeLocalReplica, FakeSource, base_config  # noqa: E402


@pytest.fixture
def config(tmp_path):
    return base_config(tmp_path)


@pytest.fixture
def local():
    return FakeLocalReplica()


@pytest.fixture
def source():
    return FakeSource()


@pytest.fixture
def dumper(source, tmp_path):
    return FakeDumper(source, tmp_path / 'backups')


@pytest.fixture
def loader(local):
    return FakeLoader(local)
