#!/usr/bin/env python
"""
Run the Pricing Portal API with uvicorn.

Host, port and data directory come from Settings, so the PRICING_PORTAL_*
environment variables apply here too.

Usage:
    python scripts/run_api.py
    python scripts/run_api.py --no-reload
"""
import argparse
import os
import subprocess
import sys
from pathlib import Path

# Add src to path
project_root = Path(__file__).parent.parent
src_path = project_root / 'src'
sys.path.insert(0, str(src_path))

from pricing_portal.config.settings import get_settings


def build_command(settings, reload: bool = True) -> list[str]:
    command = [
        sys.executable, "-m", "uvicorn",
        "pricing_portal.api.main:app",
        "--host", settings.api_host,
        "--port", str(settings.api_port),
    ]
    if reload:
        command.append("--reload")
    return command


def main():
    parser = argparse.ArgumentParser(description="Run the Pricing Portal API")
    parser.add_argument('--no-reload', action='store_true', help="Disable auto-reload")
    args = parser.parse_args()

    settings = get_settings()
    env = os.environ.copy()
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(src_path), env.get("PYTHONPATH")]))

    print(f"Starting Pricing Portal API on {settings.api_host}:{settings.api_port}")
    print(f"  Rules: {settings.data_dir}")
    try:
        subprocess.run(build_command(settings, reload=not args.no_reload), cwd=project_root, env=env)
    except KeyboardInterrupt:
        print("\nAPI stopped.")


if __name__ == "__main__":
    main()
