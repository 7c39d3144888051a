#!/usr/bin/env python3
"""
Development startup script.

Starts both the cart service and the storefront in development mode.
"""

import os
import sys
import subprocess
import time
from pathlib import Path

# Project root
PROJECT_ROOT = Path(__file__).parent.parent


def check_dependencies():
    """Check if required dependencies are installed."""
    try:
        import fastapi
        import uvicorn
        import httpx
        import jinja2
        print("✓ All core dependencies installed")
        return True
    except ImportError as e:
        print(f"✗ Missing dependency: {e.name}")
        print("\nRun: pip install -e .")
        return False


def check_env():
    """Check if .env file exists."""
    env_file = PROJECT_ROOT / "config" / ".env"
    env_example = PROJECT_ROOT / "config" / ".env.example"

    if env_file.exists():
        print("✓ Configuration file found")
    elif env_example.exists():
        print("! Configuration file not found, copying from example...")
        import shutil
        shutil.copy(env_example, env_file)
        print("✓ Created config/.env from example")
    else:
        print("! No configuration file found, using defaults")
    return True


def start_services():
    """Start both services in development mode."""
    processes = []

    try:
        print("\n🛒 Starting Cart Service on http://localhost:8001 ...")
        cart_process = subprocess.Popen(
            [
                sys.executable, "-m", "uvicorn",
                "cart_service.main:app",
                "--reload",
                "--host", "0.0.0.0",
                "--port", "8001",
            ],
            cwd=PROJECT_ROOT,
            env=os.environ.copy(),
        )
        processes.append(cart_process)

        # Wait a bit for the cart service to start
        time.sleep(2)

        print("🏬 Starting Storefront on http://localhost:8000 ...")
        storefront_process = subprocess.Popen(
            [
                sys.executable, "-m", "uvicorn",
                "storefront.main:app",
                "--reload",
                "--host", "0.0.0.0",
                "--port", "8000",
            ],
            cwd=PROJECT_ROOT,
            env={**os.environ, "CART_SERVICE_BASE_URL": "http://localhost:8001"},
        )
        processes.append(storefront_process)

        print("\n" + "=" * 60)
        print("Services started successfully!")
        print("=" * 60)
        print("\n📍 Cart page:        http://localhost:8000/cart")
        print("📍 Storefront API:   http://localhost:8000/docs")
        print("📍 Cart Service API: http://localhost:8001/docs")
        print("\nPress Ctrl+C to stop all services")
        print("=" * 60)

        for p in processes:
            p.wait()

    except KeyboardInterrupt:
        print("\n\nShutting down services...")
        for p in processes:
            p.terminate()
        for p in processes:
            p.wait()
        print("All services stopped.")


def main():
    print("=" * 60)
    print("Storefront - Development Server")
    print("=" * 60)

    print("\nRunning pre-flight checks...")

    if not check_dependencies():
        sys.exit(1)

    check_env()

    print("\n✓ All checks passed!")

    start_services()


if __name__ == "__main__":
    main()
