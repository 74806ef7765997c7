#!/usr/bin/env python3
"""
Development startup script.

Runs pre-flight checks, then serves the storefront API with auto-reload
on the host and port from config/.env.
"""

import os
import subprocess
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
ENV_FILE = PROJECT_ROOT / "config" / ".env"


def check_dependencies() -> bool:
    """Report the first missing runtime dependency, if any."""
    missing = []
    for module in ("fastapi", "uvicorn", "httpx", "jwt", "cryptography", "pydantic_settings"):
        try:
            __import__(module)
        except ImportError:
            missing.append(module)

    if missing:
        print(f"✗ Missing dependencies: {', '.join(missing)}")
        print("\nRun: pip install -e .")
        return False

    print("✓ Runtime dependencies installed")
    return True


def ensure_env() -> None:
    """Offer to generate config/.env when it is absent."""
    if ENV_FILE.exists():
        print(f"✓ Using {ENV_FILE.relative_to(PROJECT_ROOT)}")
        return

    answer = input("\nconfig/.env not found. Generate it now? [Y/n]: ")
    if answer.strip().lower() == "n":
        print("Continuing with built-in development defaults.")
        return

    subprocess.run(
        [sys.executable, str(PROJECT_ROOT / "scripts" / "generate_secrets.py")],
        check=True,
    )


def serve() -> None:
    import uvicorn

    from storefront.core.config import get_settings

    settings = get_settings()
    print(f"\n🏪 Storefront API docs: http://localhost:{settings.port}/docs")
    print("Press Ctrl+C to stop\n")

    uvicorn.run(
        "storefront.main:app",
        host=settings.host,
        port=settings.port,
        reload=True,
        reload_dirs=[str(PROJECT_ROOT / "commerce"), str(PROJECT_ROOT / "storefront")],
    )


def main():
    os.chdir(PROJECT_ROOT)

    print("Storefront - development server")
    print("-" * 40)

    if not check_dependencies():
        sys.exit(1)
    ensure_env()
    serve()


if __name__ == "__main__":
    main()
