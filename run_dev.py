#!/usr/bin/env python
"""
Development server runner for the Multiplier proxy.

Usage:
    python run_dev.py

Reads the mount settings from .env (see .env.example) and serves every
path: requests under MOUNT_PATH are proxied to ORIGIN_HOST, everything
else is forwarded to where it was addressed.
"""
import sys


def check_dependencies():
    """Check that the runtime dependencies are importable"""
    try:
        import fastapi  # noqa: F401
        import uvicorn  # noqa: F401
        import httpx  # noqa: F401
        return True
    except ImportError:
        return False


def main():
    """Run development server"""

    if not check_dependencies():
        print("[ERROR] Dependencies not found in current Python environment!")
        print(f"        Current Python: {sys.executable}")
        print()
        print("Please run:")
        print("  pip install -e '.[test]' && python run_dev.py")
        print()
        sys.exit(1)

    from app.config import settings

    try:
        import uvicorn

        print("=" * 60)
        print(f"Starting {settings.PROJECT_NAME} development server...")
        print("=" * 60)
        print("URL:    http://0.0.0.0:8000")
        print(f"Mount:  http://0.0.0.0:8000{settings.MOUNT_PATH} → https://{settings.ORIGIN_HOST}")
        print("=" * 60)
        print()

        uvicorn.run(
            "app.main:app",
            host="0.0.0.0",
            port=8000,
            reload=True,
            log_level="info",
            proxy_headers=True,
        )
    except KeyboardInterrupt:
        print("\n[OK] Server stopped")
    except Exception as e:
        print(f"\n[ERROR] Error starting server: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
