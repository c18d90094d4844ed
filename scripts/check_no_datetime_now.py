#!/usr/bin/env python3
"""Pre-commit hook to prevent direct clock reads in bandgo/.

Every manager receives the current time through TimeAuthorityProtocol so
tests can freeze and advance it. This script walks the AST of each module
and fails on any ``datetime.now()`` / ``datetime.utcnow()`` call outside
TimeAuthorityService. Mentions inside docstrings and comments are ignored.

Usage:
    python scripts/check_no_datetime_now.py [package_directory]

Exit codes:
    0: No violations found
    1: Violations found
"""

import ast
import sys
from pathlib import Path

FORBIDDEN_CALLS = {"now", "utcnow"}

# TimeAuthorityService is the only module allowed to read the clock
ALLOWED_FILES = {
    "bandgo/application/services/time_authority_service.py",
}


def _is_clock_read(node: ast.Call) -> bool:
    func = node.func
    if not isinstance(func, ast.Attribute) or func.attr not in FORBIDDEN_CALLS:
        return False
    target = func.value
    if isinstance(target, ast.Name):
        return target.id == "datetime"
    # datetime.datetime.now()
    return isinstance(target, ast.Attribute) and target.attr == "datetime"


def check_file(file_path: Path) -> list[tuple[int, str]]:
    """Return (line_number, source_line) for every clock read in a file."""
    try:
        content = file_path.read_text(encoding="utf-8")
        tree = ast.parse(content, filename=str(file_path))
    except (OSError, UnicodeDecodeError, SyntaxError):
        return []

    lines = content.splitlines()
    return [
        (node.lineno, lines[node.lineno - 1].strip())
        for node in ast.walk(tree)
        if isinstance(node, ast.Call) and _is_clock_read(node)
    ]


def main() -> int:
    package_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else Path("bandgo")

    if not package_dir.exists():
        print(f"Warning: {package_dir}/ not found, skipping check")
        return 0

    all_violations: dict[str, list[tuple[int, str]]] = {}
    for py_file in package_dir.rglob("*.py"):
        relative_path = py_file.relative_to(package_dir.parent).as_posix()
        if relative_path in ALLOWED_FILES:
            continue
        violations = check_file(py_file)
        if violations:
            all_violations[relative_path] = violations

    if not all_violations:
        print(f"No datetime.now() violations found in {package_dir}/")
        return 0

    print("Direct clock reads detected:")
    print()
    for file_path, violations in sorted(all_violations.items()):
        print(f"  {file_path}:")
        for line_num, line_content in violations:
            print(f"    Line {line_num}: {line_content}")
        print()

    print("How to fix:")
    print("  Inject TimeAuthorityProtocol and call self._time.now() instead.")
    return 1


if __name__ == "__main__":
    sys.exit(main())
