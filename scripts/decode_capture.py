"""Decode a captured binary frame and print the node tree plus forensic analyses.

Usage:
    uv run python scripts/decode_capture.py <capture>
    uv run python scripts/decode_capture.py --hex f8035a...
    uv run python scripts/decode_capture.py --base64 +ANa...

<capture> is a path to a file holding the raw frame bytes.

Output is one JSON document on stdout. It contains decoded identities and
message text: local forensic inspection only, never paste it into tickets.
"""

from __future__ import annotations

import base64
import binascii
import json
import sys
from pathlib import Path


def _read_capture(args: list[str]) -> bytes:
    if args[0] == "--hex":
        return bytes.fromhex(args[1])
    if args[0] == "--base64":
        return base64.b64decode(args[1], validate=True)
    return Path(args[0]).read_bytes()


def main() -> None:
    args = sys.argv[1:]
    if not args or (args[0] in ("--hex", "--base64") and len(args) < 2):
        print("Usage: uv run python scripts/decode_capture.py [--hex|--base64] <capture>")
        sys.exit(2)

    try:
        data = _read_capture(args)
    except (ValueError, binascii.Error) as e:
        print(f"ERROR: capture is not valid {args[0].lstrip('-')}: {e}")
        sys.exit(1)
    except OSError as e:
        print(f"ERROR: cannot read capture: {e}")
        sys.exit(1)

    from waforensics.domain.inspection import inspect_capture
    from waforensics.whatsapp.binary_decoder import node_to_json

    result = inspect_capture(data)
    if result.node is None:
        print(f"ERROR: capture did not decode ({len(data)} bytes, captureId={result.capture_id})")
        sys.exit(1)

    output = {
        "captureId": result.capture_id,
        "node": node_to_json(result.node),
        "messages": [
            {
                "path": m.path,
                "messageId": m.info.key.id,
                "type": m.info.message.type if m.info.message else None,
                "status": m.info.status,
                "analysis": m.analysis.model_dump(mode="json"),
            }
            for m in result.messages
        ],
    }
    print(json.dumps(output, indent=2, ensure_ascii=False, default=str))

    if result.is_manipulated:
        sys.exit(3)


if __name__ == "__main__":
    main()
