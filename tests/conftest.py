import logging

import pytest
import pytest_asyncio

from cannedns.config import ServerConfig
from cannedns.datafile import parse_text
from cannedns.protocol.server import CannedServer
from tests.mocks.dns_clients import TEST_HOST, datafile_text

SCENARIO_A = """
ENTRY_BEGIN
MATCH qname
REPLY NOERROR QR AA
SECTION QUESTION
example.com. IN A
SECTION ANSWER
example.com. 3600 IN A 192.0.2.1
ENTRY_END
"""


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "property: property-based tests driven by hypothesis"
    )


@pytest.fixture
def scenario_a():
    return datafile_text(SCENARIO_A)


@pytest.fixture
def write_datafile(tmp_path):
    """Factory writing an inline data file to disk and returning its path."""

    def _write(text: str, name: str = "replies.data"):
        path = tmp_path / name
        path.write_text(datafile_text(text), encoding="utf-8")
        return path

    return _write


@pytest_asyncio.fixture
async def serve():
    """Factory starting a CannedServer on an ephemeral port for a data file text."""
    servers = []

    async def _serve(text: str, **config_args) -> CannedServer:
        config = ServerConfig(host=TEST_HOST, port=0, **config_args)
        server = CannedServer(parse_text(datafile_text(text)), config)
        await server.start()
        servers.append(server)
        return server

    yield _serve
    for server in servers:
        await server.stop()


@pytest.fixture
def preserve_root_logger():
    """Restore root logger handlers and level changed by setup_logging()."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
