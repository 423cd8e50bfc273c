# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Apply or revert the account schema.

    python bin/manage_schema.py apply            # upgrade to head
    python bin/manage_schema.py revert           # downgrade to base
    python bin/manage_schema.py current          # show applied revision

``--url`` overrides DATABASE_URL from etc/app.conf.
"""

import argparse
import sys
import os

# bin/manage_schema.py  →  ../  →  project root
_PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
_BACKEND_DIR  = os.path.join(_PROJECT_ROOT, "backend")
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)

import schema  # noqa: E402


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("action", choices=["apply", "revert", "current"])
    parser.add_argument("--url", help="database URL (default: DATABASE_URL)")
    args = parser.parse_args(argv)

    if args.action == "apply":
        schema.apply(args.url)
    elif args.action == "revert":
        schema.revert(args.url)
    else:
        print(schema.current(args.url) or "<empty>")
    return 0


if __name__ == "__main__":
    sys.exit(main())
