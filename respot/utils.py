"""Small helpers shared across the package."""

from __future__ import annotations


def obfuscate_username(username: str) -> str:
    """Hide the middle of a username so it can be logged safely.

    For e-mail style usernames only the local part is obfuscated.
    """
    if "@" in username:
        local, domain = username.split("@", 1)
        return f"{obfuscate_username(local)}@{domain}"

    if len(username) < 5:
        return username

    return username[:2] + "*" * (len(username) - 4) + username[-2:]