"""Entry point for the composer package.

Usage::

    python -m mime_composer validate params.json   # print the validation result
    python -m mime_composer compose params.json    # print the composed MIME message

``params.json`` holds a JSON object of request parameters (``from``, ``to``,
``cc``, ``bcc``, ``subject``, ``content``, ``html_content``, ``mime_raw``,
``custom_headers``).  Use ``-`` to read it from stdin.
"""

from __future__ import annotations

import asyncio
import json
import sys

USAGE = "Usage: python -m mime_composer <validate|compose> <params.json|->"


def _load_params(path: str) -> dict:
    if path == "-":
        data = json.load(sys.stdin)
    else:
        with open(path) as fh:
            data = json.load(fh)
    if not isinstance(data, dict):
        raise ValueError("parameters must be a JSON object")
    return {
        key: value if value is None or isinstance(value, str) else json.dumps(value)
        for key, value in data.items()
    }


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 2 or args[0] not in ("validate", "compose"):
        print(USAGE, file=sys.stderr)
        return 1

    command, path = args

    from .config import ComposerConfig
    from .errors import ComposeError
    from .logging import setup_logging_from_config
    from .message import OutboundEmail

    config = ComposerConfig()
    setup_logging_from_config(config)

    try:
        params = _load_params(path)
    except (OSError, ValueError) as exc:
        print(f"cannot read parameters: {exc}", file=sys.stderr)
        return 1

    message = OutboundEmail.from_params("cli", params, config=config)
    result = message.validate()

    if command == "validate" or not result.ok:
        print(json.dumps(result.to_response()))
        return 0 if result.ok else 1

    try:
        mime = asyncio.run(message.generate_mime_message())
    except ComposeError as exc:
        print(json.dumps(exc.to_dict()), file=sys.stderr)
        return 2

    if isinstance(mime, bytes):
        sys.stdout.buffer.write(mime)
        sys.stdout.flush()
    else:
        sys.stdout.write(mime)
    return 0


if __name__ == "__main__":
    sys.exit(main())
