import pytest

from ecsctl.exceptions import ValidationError
from ecsctl.session import PortMapping, build_forward_command, parse_port_mapping


def test_parse_port_mapping() -> None:
    mapping = parse_port_mapping("8080:80")
    assert mapping == PortMapping(local_port=8080, remote_port=80)
    assert str(mapping) == "8080:80"


@pytest.mark.parametrize("text", ["8080", "8080:", ":80", "a:b", "80:80:80", "", "-1:80"])
def test_malformed_mappings_are_rejected(text: str) -> None:
    with pytest.raises(ValidationError, match="LOCAL_PORT:CONTAINER_PORT"):
        parse_port_mapping(text)


@pytest.mark.parametrize("text", ["0:80", "8080:0", "70000:80", "8080:65536"])
def test_out_of_range_ports_are_rejected(text: str) -> None:
    with pytest.raises(ValidationError, match="1-65535"):
        parse_port_mapping(text)


def test_forward_command_probes_then_prefers_socat() -> None:
    command = build_forward_command(5432)

    assert command.startswith("sh -c '")
    assert command.endswith("'")
    assert command.count("'") == 2
    probe = command.index("/dev/tcp/localhost/5432")
    socat = command.index("socat STDIO TCP:localhost:5432")
    nc = command.index("nc localhost 5432")
    bash = command.index("exec 3<>/dev/tcp/localhost/5432")
    assert probe < socat < nc < bash
    assert "Port 5432 is not open" in command
    assert "Please install socat or netcat" in command


def test_forward_command_rejects_invalid_port() -> None:
    with pytest.raises(ValidationError):
        build_forward_command(0)
