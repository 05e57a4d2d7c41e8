"""Basic example of using awslambdarpc.

Start a Go function locally first, e.g.:

    _LAMBDA_SERVER_PORT=8080 go run ./main.go
"""

import asyncio
import json

from awslambdarpc import Failure, LambdaClient, RemoteInvocationError, Success, invoke


def hello() -> None:
    """Invoke once and print the output."""
    result = invoke("localhost:8080", json.dumps({"body": "Hello World!"}).encode())
    match result:
        case Success(payload=payload):
            print(f"Function returned: {payload.decode()}")
        case Failure(error=RemoteInvocationError() as e):
            print(f"Function failed with {e.error_type}: {e.message}")
            for frame in e.stack_trace:
                print(f"  {frame}")
        case Failure(error=e):
            print(f"Could not invoke function: {e}")


def with_metadata() -> None:
    """Pass request metadata and a shorter deadline."""
    client = LambdaClient("localhost:8080", timeout=30)
    result = client.invoke(
        b'{"key": "value"}',
        deadline_seconds=5,
        request_id="c6af9ac6-7b61-11e6-9a41-93e8deadbeef",
        invoked_function_arn="arn:aws:lambda:us-east-1:123456789012:function:hello",
    )
    # Raises the failure's error instead of returning it
    print(result.unwrap().decode())


async def concurrently() -> None:
    """Invoke several times at once; each call uses its own connection."""
    client = LambdaClient("localhost:8080")
    results = await asyncio.gather(
        *(client.invoke_async(json.dumps({"n": n}).encode()) for n in range(3))
    )
    for result in results:
        print(result)


if __name__ == "__main__":
    hello()
    with_metadata()
    asyncio.run(concurrently())
