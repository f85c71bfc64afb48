#!/usr/bin/env python3
import argparse
import base64
import os
import secrets

from dotenv import dotenv_values

ENV_FILE = ".env"
ENV_EXAMPLE = ".env.example"
PLACEHOLDER = "SECRET_KEY=change-me"


def generate_secret_key(length=32):
    """Generate a hex key from `length` random bytes"""
    return secrets.token_hex(length)


def generate_base64_secret_key(length=32):
    """Generate a URL-safe base64 key from `length` random bytes"""
    return base64.urlsafe_b64encode(secrets.token_bytes(length)).decode('utf-8')


def update_env_file(secret_key, env_file=ENV_FILE):
    """Write SECRET_KEY into .env, creating it from .env.example when missing"""
    if not os.path.exists(env_file):
        if not os.path.exists(ENV_EXAMPLE):
            print(f"{env_file} does not exist and could not find {ENV_EXAMPLE}")
            return False
        with open(ENV_EXAMPLE, "r") as example_file:
            content = example_file.read()
        with open(env_file, "w") as file:
            file.write(content.replace(PLACEHOLDER, f"SECRET_KEY={secret_key}"))
        print(f"Created {env_file} from {ENV_EXAMPLE}")
        return True

    current_key = dotenv_values(env_file).get("SECRET_KEY")
    with open(env_file, "r") as file:
        content = file.read()

    if current_key:
        content = content.replace(f"SECRET_KEY={current_key}", f"SECRET_KEY={secret_key}")
        print(f"Updated SECRET_KEY in {env_file}")
    else:
        content = content.rstrip("\n") + f"\nSECRET_KEY={secret_key}\n"
        print(f"Appended SECRET_KEY to {env_file}")

    with open(env_file, "w") as file:
        file.write(content)
    return True


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Generate the JWT signing key")
    parser.add_argument("--length", type=int, default=32, help="Key length in bytes")
    parser.add_argument("--base64", action="store_true", help="Emit a base64 key instead of hex")
    parser.add_argument("--write", action="store_true", help=f"Store the key in {ENV_FILE}")
    args = parser.parse_args()

    if args.base64:
        key = generate_base64_secret_key(args.length)
    else:
        key = generate_secret_key(args.length)

    print(key)
    if args.write:
        update_env_file(key)
