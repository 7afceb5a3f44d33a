from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Ensure "auction_reports" is importable when running as a script (python scripts/issue_token.py)
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from auction_reports.core.security import create_access_token_for_subject
from auction_reports.models import RoleName


def main() -> None:
    parser = argparse.ArgumentParser(description="Issue a local bearer token for the role gate.")
    parser.add_argument("subject", help="User identifier stored as the token's sub claim")
    parser.add_argument(
        "--role",
        default=RoleName.editor.value,
        choices=[r.value for r in RoleName],
        help="Role claim (default: editor)",
    )
    parser.add_argument("--minutes", type=int, default=None, help="Lifetime in minutes")
    args = parser.parse_args()

    print(create_access_token_for_subject(args.subject, args.role, expires_minutes=args.minutes))


if __name__ == "__main__":
    main()
