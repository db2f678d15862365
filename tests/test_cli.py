import pytest
from unittest.mock import patch

from pendant import cli
from pendant.schemas.config import ControllerType

def test_defaults():
    args = cli.build_parser().parse_args(["-p", "/dev/ttyUSB0"])
    config = cli.config_from_args(args)
    assert config.port == "/dev/ttyUSB0"
    assert config.baudrate == 115200
    assert config.socket_address == "localhost"
    assert config.socket_port == 8000
    assert config.controller_type == ControllerType.GRBL
    assert config.access_token_lifetime == "30d"
    assert config.secret is None
    assert config.tick_interval == 0.1

def test_options():
    args = cli.build_parser().parse_args([
        "-s", "abc", "-p", "COM3", "-b", "250000",
        "--socket-address", "cnc.local", "--socket-port", "8080",
        "--controller-type", "TinyG", "--access-token-lifetime", "12h",
        "--log-level", "debug"
    ])
    config = cli.config_from_args(args)
    assert config.secret == "abc"
    assert config.baudrate == 250000
    assert config.socket_url == "ws://cnc.local:8080"
    assert config.controller_type == ControllerType.TINYG
    assert config.access_token_lifetime == "12h"
    assert config.log_level == "DEBUG"

def test_rejects_unknown_controller_type():
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["--controller-type", "Marlin"])

def test_list_ports(capsys):
    with patch.object(cli.ports, "list_serial_ports", return_value=["/dev/ttyACM0", "/dev/ttyUSB0"]):
        assert cli.main(["--list"]) == 0
    assert capsys.readouterr().out.splitlines() == ["/dev/ttyACM0", "/dev/ttyUSB0"]

def test_prompts_for_port_and_serves():
    with patch.object(cli.ports, "list_serial_ports", return_value=["/dev/ttyUSB0"]), \
            patch.object(cli.ports, "prompt_for_port", return_value="/dev/ttyUSB0") as prompt, \
            patch.object(cli.asgi, "factory") as factory, \
            patch.object(cli.uvicorn, "run") as run:
        assert cli.main(["-s", "abc"]) == 0

    prompt.assert_called_once_with(["/dev/ttyUSB0"])
    config = factory.call_args.args[0]
    assert config.port == "/dev/ttyUSB0"
    run.assert_called_once_with(factory.return_value, host="127.0.0.1", port=8001, log_level="info")

def test_no_ports_to_prompt():
    with patch.object(cli.ports, "list_serial_ports", return_value=[]):
        assert cli.main([]) == 1

def test_invalid_port_number():
    with pytest.raises(SystemExit):
        cli.main(["-p", "/dev/ttyUSB0", "--socket-port", "70000"])
