#!/usr/bin/env python3
"""
Generate signing secrets for local development.

Writes fresh JWT access/refresh secrets and a gateway webhook secret into
config/.env, starting from config/.env.example.

Usage:
    python scripts/generate_secrets.py
"""

import os
import secrets
import sys
from pathlib import Path

GENERATED_KEYS = (
    "JWT_ACCESS_SECRET",
    "JWT_REFRESH_SECRET",
    "RAZORPAY_WEBHOOK_SECRET",
)


def render_env(template: str) -> str:
    """Replace the generated keys in an env template, keep every other line"""
    lines = []
    for line in template.splitlines():
        key = line.split("=", 1)[0].strip()
        if key in GENERATED_KEYS:
            line = f"{key}={secrets.token_urlsafe(48)}"
        lines.append(line)

    present = {line.split("=", 1)[0].strip() for line in lines}
    lines.extend(f"{key}={secrets.token_urlsafe(48)}" for key in GENERATED_KEYS if key not in present)
    return "\n".join(lines) + "\n"


def main():
    project_root = Path(__file__).parent.parent
    env_file = project_root / "config" / ".env"
    env_example = project_root / "config" / ".env.example"

    print("=" * 60)
    print("Storefront Secret Generator")
    print("=" * 60)

    if env_file.exists():
        response = input("\nconfig/.env already exists. Regenerate secrets? [y/N]: ")
        if response.lower() != "y":
            print("Aborted.")
            sys.exit(0)
        template = env_file.read_text()
    elif env_example.exists():
        template = env_example.read_text()
    else:
        template = ""

    env_file.parent.mkdir(parents=True, exist_ok=True)
    env_file.write_text(render_env(template))
    os.chmod(env_file, 0o600)

    print(f"\nWrote {env_file}")
    print("Generated: " + ", ".join(GENERATED_KEYS))
    print("\nSet RAZORPAY_KEY_ID / RAZORPAY_KEY_SECRET from your gateway dashboard,")
    print("and register the webhook secret with the gateway's webhook settings.")


if __name__ == "__main__":
    main()
