import os
import sys
import pathlib
import tempfile

import dns.resolver
import pytest

# Ensure project root is on sys.path so 'import app' works when pytest runs from
# different working directories or when running individual tests.
_ROOT = pathlib.Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

# Keep test logs out of the project tree and skip the pause between batches
os.environ['LOG_DIR'] = tempfile.mkdtemp(prefix='domain-checker-logs-')
os.environ['BATCH_DELAY'] = '0'

import app as app_module
import domain_checker


@pytest.fixture
def client():
    app_module.app.testing = True
    app_module.limiter.reset()
    return app_module.app.test_client()


@pytest.fixture
def registered(monkeypatch):
    """Fake DNS: hostnames added to the returned set resolve, everything else is NXDOMAIN.

    Every resolver lifetime that was set is recorded in ``taken.lifetimes``.
    """
    taken = RegisteredNames()

    class FakeResolver:
        def __init__(self):
            self.lifetime = None

        def resolve(self, domain, rdtype):
            taken.lifetimes.append(self.lifetime)
            if domain in taken:
                return ['192.0.2.10']
            raise dns.resolver.NXDOMAIN()

    monkeypatch.setattr(domain_checker.dns.resolver, 'Resolver', FakeResolver)
    return taken


class RegisteredNames(set):
    def __init__(self):
        super().__init__()
        self.lifetimes = []
