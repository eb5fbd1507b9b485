"""Quick diagnostic script to verify the booking service environment variables."""

from __future__ import annotations

import os

from dotenv import load_dotenv


REQUIRED_KEYS = [
    "SENDGRID_API_KEY",
    "SENDGRID_SENDER_EMAIL",
]

OPTIONAL_KEYS = [
    "SUPABASE_URL",
    "SUPABASE_SERVICE_ROLE_KEY",
    "DATABASE_PATH",
    "PUBLIC_BASE_URL",
    "EMAIL_SANDBOX_MODE",
]


def main() -> None:
    load_dotenv()
    for key in REQUIRED_KEYS:
        value = os.getenv(key)
        status = "SET" if value else "MISSING"
        print(f"{key}: {status}")
    for key in OPTIONAL_KEYS:
        value = os.getenv(key)
        status = "SET" if value else "DEFAULT"
        print(f"{key}: {status}")


if __name__ == "__main__":
    main()
