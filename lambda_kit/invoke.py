# lambda_kit/invoke.py
"""
Runs a Lambda handler locally against an event file.

    lambda-invoke events/scheduled.json
    lambda-invoke --classify events/s3-put.json
    cat event.json | lambda-invoke --handler lambdas.default.app:handler
"""
import argparse
import importlib
import json
import sys
import uuid
from typing import Any, Callable, List, Optional

from lambda_kit.errors import AppError
from lambda_kit.lambda_handler import detect_event_source

DEFAULT_HANDLER_PATH = "lambdas.default.app:handler"


class LocalContext:
    """Minimal stand-in for the Lambda context object."""

    def __init__(self, function_name: str):
        self.function_name = function_name
        self.function_version = "$LATEST"
        self.aws_request_id = str(uuid.uuid4())
        self.memory_limit_in_mb = 128

    def get_remaining_time_in_millis(self) -> int:
        return 0

    def __str__(self) -> str:
        return f"LocalContext({self.function_name}, {self.aws_request_id})"


def load_handler(path: str) -> Callable[[Any, Any], Any]:
    module_name, _, attr = path.partition(":")
    if not attr:
        raise ValueError(f"Handler must look like 'module:attribute', got '{path}'")
    return getattr(importlib.import_module(module_name), attr)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Invoke a Lambda handler locally.")
    parser.add_argument("event", nargs="?", type=argparse.FileType("r"), default=sys.stdin,
                        help="Event JSON file (default: stdin)")
    parser.add_argument("--handler", default=DEFAULT_HANDLER_PATH,
                        help=f"Handler to call, as module:attribute (default: {DEFAULT_HANDLER_PATH})")
    parser.add_argument("--classify", action="store_true",
                        help="Only print the detected event source")
    args = parser.parse_args(argv)

    event = json.load(args.event)

    if args.classify:
        print(detect_event_source(event).value)
        return 0

    handler = load_handler(args.handler)
    try:
        result = handler(event, LocalContext(args.handler))
    except AppError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
