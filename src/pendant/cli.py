import argparse
import sys

import pydantic
import uvicorn
from loguru import logger

from pendant import asgi
from pendant.modules import ports
from pendant.schemas.config import ControllerType
from pendant.schemas.config import PendantConfig

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cncjs-pendant-gamepad",
        description="Jog a GRBL machine through cncjs with a USB gamepad",
        usage="%(prog)s -s <secret> -p <port> [options]"
    )
    parser.add_argument("-l", "--list", action="store_true", help="list available ports then exit")
    parser.add_argument("-s", "--secret", help="the secret key stored in the ~/.cncrc file")
    parser.add_argument("-p", "--port", help="path or name of serial port")
    parser.add_argument("-b", "--baudrate", type=int, default=115200, help="baud rate (default: 115200)")
    parser.add_argument("--socket-address", default="localhost", help="socket address or hostname (default: localhost)")
    parser.add_argument("--socket-port", type=int, default=8000, help="socket port (default: 8000)")
    parser.add_argument(
        "--controller-type",
        default=ControllerType.GRBL.value,
        choices=[controller_type.value for controller_type in ControllerType],
        help="controller type: Grbl|Smoothie|TinyG (default: Grbl)"
    )
    parser.add_argument(
        "--access-token-lifetime",
        default="30d",
        help="access token lifetime in seconds or a time span string (default: 30d)"
    )
    parser.add_argument("--api-host", default="127.0.0.1", help="status API bind address (default: 127.0.0.1)")
    parser.add_argument("--api-port", type=int, default=8001, help="status API port (default: 8001)")
    parser.add_argument("--log-level", default="INFO", help="log level (default: INFO)")
    return parser

def config_from_args(args: argparse.Namespace) -> PendantConfig:
    """
    Build the pendant configuration from parsed arguments.

    Raises:
        pydantic.ValidationError: If an option value is out of range
    """
    return PendantConfig(
        port=args.port,
        secret=args.secret,
        baudrate=args.baudrate,
        socket_address=args.socket_address,
        socket_port=args.socket_port,
        controller_type=args.controller_type,
        access_token_lifetime=args.access_token_lifetime,
        api_host=args.api_host,
        api_port=args.api_port,
        log_level=args.log_level.upper()
    )

def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.list:
        for port in ports.list_serial_ports():
            print(port)
        return 0

    if not args.port:
        try:
            args.port = ports.prompt_for_port(ports.list_serial_ports())
        except RuntimeError as e:
            logger.error(str(e))
            return 1

    try:
        config = config_from_args(args)
    except pydantic.ValidationError as e:
        parser.error(str(e))

    app = asgi.factory(config)
    uvicorn.run(app, host=config.api_host, port=config.api_port, log_level=config.log_level.lower())
    return 0

if __name__ == "__main__":
    sys.exit(main())
