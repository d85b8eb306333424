#!/usr/bin/env python3
"""
Print a bcrypt hash for ADMIN_PASSWORD_HASH

Usage: python generate_hash.py [password]
"""

import getpass
import sys

from auth import hash_password, verify_password


def main():
    password = sys.argv[1] if len(sys.argv) > 1 else getpass.getpass("Admin password: ")
    if not password:
        print("❌ Password must not be empty")
        sys.exit(1)

    password_hash = hash_password(password)
    print(f"✅ Hash verified: {verify_password(password, password_hash)}")
    print(f"ADMIN_PASSWORD_HASH={password_hash}")


if __name__ == "__main__":
    main()
