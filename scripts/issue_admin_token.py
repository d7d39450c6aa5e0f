"""Print a signed admin token, for local use and smoke testing."""

import argparse

from couponpool.services.admin_auth_service import AdminAuthService


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("admin_id", nargs="?", default="admin")
    parser.add_argument("--hours", type=int, default=None, help="token lifetime in hours")
    args = parser.parse_args()
    print(AdminAuthService.issue_token(args.admin_id, hours=args.hours))


if __name__ == "__main__":
    main()
