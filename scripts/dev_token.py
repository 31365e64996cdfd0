#!/usr/bin/env python3
"""
Mint a bearer token for exercising the personalised feed locally.

Reads JWT_SECRET / JWT_ALGORITHM / JWT_AUDIENCE from .env, the same settings
the service verifies with.

Usage:
    python -m scripts.dev_token [USER_ID] [--hours 24] [--role admin]
"""
from __future__ import annotations

import argparse
import sys
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Add backend root to path so imports resolve
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "shared"))

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from jose import jwt

from shared.auth.config import AuthSettings
from shared.constants import Role


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("user_id", nargs="?", default=None, help="UUID; random when omitted")
    parser.add_argument("--hours", type=float, default=24.0)
    parser.add_argument("--role", action="append", choices=[r.value for r in Role], default=[])
    args = parser.parse_args()

    settings = AuthSettings()
    user_id = uuid.UUID(args.user_id) if args.user_id else uuid.uuid4()
    claims = {
        "sub": str(user_id),
        "aud": settings.audience,
        "exp": int((datetime.now(timezone.utc) + timedelta(hours=args.hours)).timestamp()),
        "roles": args.role or [Role.USER.value],
    }
    if settings.issuer:
        claims["iss"] = settings.issuer

    print(f"user_id={user_id}", file=sys.stderr)
    print(jwt.encode(claims, settings.secret, algorithm=settings.algorithm))


if __name__ == "__main__":
    main()
