import pytest

from cannedns.config import CONN_BACKLOG, DEFAULT_PORT, INBUF_SIZE, ServerConfig
from cannedns.exceptions import ConfigurationError


def test_defaults():
    config = ServerConfig()
    assert config.port == DEFAULT_PORT == 53
    assert config.inbuf_size == INBUF_SIZE == 4096
    assert config.backlog == CONN_BACKLOG == 5
    assert config.tcp_timeout is None
    config.validate()


def test_from_env_reads_variables():
    config = ServerConfig.from_env(
        {
            "CANNEDNS_HOST": "127.0.0.1",
            "CANNEDNS_PORT": "5353",
            "CANNEDNS_TCP_TIMEOUT": "2.5",
            "CANNEDNS_LOG_LEVEL": "debug",
        }
    )
    assert config.host == "127.0.0.1"
    assert config.port == 5353
    assert config.tcp_timeout == 2.5
    assert config.log_level == "DEBUG"


def test_from_env_empty_mapping_gives_defaults():
    assert ServerConfig.from_env({}) == ServerConfig()


def test_from_env_uses_process_environment(monkeypatch):
    monkeypatch.setenv("CANNEDNS_PORT", "1053")
    assert ServerConfig.from_env().port == 1053


@pytest.mark.parametrize(
    "env", [{"CANNEDNS_PORT": "dns"}, {"CANNEDNS_TCP_TIMEOUT": "never"}]
)
def test_from_env_rejects_bad_values(env):
    with pytest.raises(ConfigurationError, match="Invalid environment setting"):
        ServerConfig.from_env(env)


@pytest.mark.parametrize(
    "field,value,message",
    [
        ("port", 70000, "Invalid port"),
        ("port", -1, "Invalid port"),
        ("tcp_timeout", 0, "TCP timeout"),
        ("inbuf_size", 0, "buffer size"),
    ],
)
def test_validate(field, value, message):
    config = ServerConfig(**{field: value})
    with pytest.raises(ConfigurationError, match=message) as excinfo:
        config.validate()
    assert excinfo.value.get_context(field) == value
