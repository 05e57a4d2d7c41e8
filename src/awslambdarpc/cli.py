"""Command line interface: invoke a local Lambda function and print its output."""

import logging
import os
from pathlib import Path
from typing import Optional

import typer

from .client import LambdaClient
from .config import DEFAULT_PAYLOAD, Settings
from .exceptions import LambdaRPCError
from .result import Failure

app = typer.Typer(
    help="awslambdarpc is a utility to make requests to your local AWS Lambda.",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.command()
def invoke(
    address: Optional[str] = typer.Option(
        None,
        "-a",
        "--address",
        help="Address of your local running function [default: $AWSLAMBDARPC_ADDRESS "
        "or localhost:8080]",
    ),
    event: Optional[Path] = typer.Option(
        None,
        "-e",
        "--event",
        exists=True,
        dir_okay=False,
        readable=True,
        help="Path to the event JSON to be used as input",
    ),
    data: str = typer.Option(
        DEFAULT_PAYLOAD.decode(), "-d", "--data", help="Data passed to the function as input"
    ),
    deadline: Optional[int] = typer.Option(
        None, "-dl", "--deadLine", help="Timeout in seconds [default: 15]"
    ),
    codec: Optional[str] = typer.Option(
        None, "--codec", help="Wire codec: gob or msgpack [default: gob]"
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Give up waiting for a response after this long"
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Log protocol activity"),
) -> None:
    """Invoke the function once and print what it returned.

    Options left unset fall back to the AWSLAMBDARPC_* environment variables.

    Examples:

      awslambdarpc -a localhost:3000 -e events/input.json

      awslambdarpc -a localhost:3000 -d '{"body": "Hello World!"}'
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # Arguments are passed through as the bytes the shell gave us.
    payload = event.read_bytes() if event is not None else os.fsencode(data)

    try:
        settings = Settings.from_env()
        client = LambdaClient(
            address if address is not None else settings.address,
            codec=codec if codec is not None else settings.codec,
            connect_timeout=settings.connect_timeout,
            timeout=timeout if timeout is not None else settings.timeout,
        )
    except LambdaRPCError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=2) from e

    result = client.invoke(payload, deadline if deadline is not None else settings.deadline_seconds)
    if isinstance(result, Failure):
        typer.echo(str(result.error), err=True)
        raise typer.Exit(code=1)
    # Bytes go to the binary stream unchanged.
    typer.echo(result.payload)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
