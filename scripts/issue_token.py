"""Utility script to issue a bearer token for calling the API."""

from __future__ import annotations

import argparse
from datetime import timedelta

from app.infrastructure.security import create_access_token


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Issue a signed access token.")
    parser.add_argument("subject", help="Caller identifier stored in the token subject")
    parser.add_argument("--role", default=None, help="Optional caller role")
    parser.add_argument(
        "--minutes",
        type=int,
        default=None,
        help="Token lifetime in minutes (default: ACCESS_TOKEN_EXPIRE_MINUTES)",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    expires = timedelta(minutes=args.minutes) if args.minutes else None
    print(create_access_token(args.subject, role=args.role, expires_delta=expires))


if __name__ == "__main__":
    main()
