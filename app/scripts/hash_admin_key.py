"""
Operator script — generates the admin key and its bcrypt hash.

Usage:
    uv run python -m app.scripts.hash_admin_key

Put the printed hash in ADMIN_API_KEY_HASH and hand the key to the
operators who are allowed to terminate or purge sessions.  Press
Enter at the prompt to have a random key generated.
"""

import getpass
import secrets

from app.core.security import hash_admin_key, verify_admin_key


def main() -> None:
    print("\nSession Control API — Admin Key Setup\n")
    key = getpass.getpass("  Admin key (blank = generate): ").strip()
    if not key:
        key = secrets.token_urlsafe(32)
        print(f"\n  Generated key: {key}")
    else:
        confirm = getpass.getpass("  Confirm:                     ").strip()
        if confirm != key:
            print("\n  Keys do not match.")
            return

    hashed = hash_admin_key(key)
    if not verify_admin_key(key, hashed):
        print("\n  Hash verification failed, nothing written.")
        return

    print("\n  Add this line to your .env:\n")
    print(f"    ADMIN_API_KEY_HASH='{hashed}'\n")


if __name__ == "__main__":
    main()
