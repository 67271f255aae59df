#!/usr/bin/env python3
"""Gate: PII check for decoder and analyzer source files.

Decoded captures are full of identities and message text. Fails if:
- print( found in runtime code (src/**)
- A logger call mentions a sensitive field without going through redaction

Logger calls are checked as a whole (from ``logger.x(`` to its closing
paren), not line by line, since context dicts usually span several lines.

Usage:
    python scripts/gate_security_pii.py
"""

import re
import sys
from pathlib import Path

# Field names that must not reach a logger call without redaction
SENSITIVE_KEYWORDS = (
    "jid",
    "push_name",
    "content",
    "caption",
    "text",
    "evidence",
    "payload",
    "attrs",
)

PRINT_PATTERN = re.compile(r"\bprint\s*\(")

LOGGER_CALL_PATTERN = re.compile(
    r"logger\.(debug|info|warning|error|critical|exception)\s*\("
)

REDACTION_PATTERNS = (
    "safe_log_context",
    "redact_value",
    "redact_string",
    "redact_jid",
)


def _call_span(content: str, start: int) -> str:
    """Return the source of the call whose opening paren ends at ``start``."""
    depth = 1
    pos = start
    while pos < len(content) and depth:
        ch = content[pos]
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        pos += 1
    return content[start:pos]


def _strip_comment(line: str) -> str:
    return line.split("#")[0] if "#" in line else line


def check_file(filepath: Path) -> list[str]:
    """Check a single file for violations. Returns list of error messages."""
    errors = []
    try:
        content = filepath.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        return []  # Skip binary files

    for lineno, line in enumerate(content.splitlines(), start=1):
        if line.lstrip().startswith("#"):
            continue
        if PRINT_PATTERN.search(_strip_comment(line)):
            errors.append(f"{filepath}:{lineno}: print() not allowed in runtime code")

    for match in LOGGER_CALL_PATTERN.finditer(content):
        call = _call_span(content, match.end())
        # Log message strings are fixed text; only the arguments matter
        args = re.sub(r'"[^"\n]*"', '""', call)
        lineno = content.count("\n", 0, match.start()) + 1
        if any(rp in args for rp in REDACTION_PATTERNS):
            continue
        lowered = args.lower()
        for keyword in SENSITIVE_KEYWORDS:
            if keyword in lowered:
                errors.append(
                    f"{filepath}:{lineno}: logger call with '{keyword}' "
                    "must use redaction (safe_log_context/redact_value)"
                )

    return errors


def main() -> int:
    """Run gate check on src directory."""
    src_dir = Path("src")

    if not src_dir.exists():
        # Try from project root
        src_dir = Path(__file__).parent.parent / "src"

    if not src_dir.exists():
        sys.stderr.write("Error: src directory not found\n")
        return 1

    all_errors: list[str] = []

    for pyfile in sorted(src_dir.rglob("*.py")):
        all_errors.extend(check_file(pyfile))

    if all_errors:
        sys.stderr.write("PII gate FAILED - violations found:\n")
        for err in all_errors:
            sys.stderr.write(f"  {err}\n")
        return 1

    sys.stdout.write("PII gate PASSED - no violations found\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
