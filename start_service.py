#!/usr/bin/env python3
"""
Service startup script for AI Art Community Service
Handles environment setup and service initialization
"""

import os
import sys


def setup_environment():
    """Set up environment variables for development"""
    env_vars = {
        "API_HOST": "0.0.0.0",
        "API_PORT": "8000",
        "API_RELOAD": "true",
        "DATABASE_URL": "sqlite:///./art_community.db",
        "LOG_LEVEL": "INFO",
        "LOG_FILE": "app.log",
        "JWT_SECRET": "development_secret_key",
        "BFL_API_BASE_URL": "https://api.bfl.ml",
    }

    for key, value in env_vars.items():
        if key not in os.environ:
            os.environ[key] = value
            print(f"Set {key}={value}")

    if not os.environ.get("BFL_API_KEY"):
        print("⚠️  BFL_API_KEY is not set, generation requests will be rejected upstream")


def check_dependencies():
    """Check if required dependencies are installed"""
    try:
        import fastapi
        import uvicorn
        import sqlalchemy
        import pydantic_settings
        import httpx
        import jose
        import passlib
        print("✅ All required dependencies are available")
        return True
    except ImportError as e:
        print(f"❌ Missing dependency: {e}")
        print("Please install dependencies with: pip install -e .")
        return False


def start_api_server():
    """Start the FastAPI server"""
    print("🚀 Starting AI Art Community Service...")

    try:
        import uvicorn

        uvicorn.run(
            "artcommunity.main:app",
            host=os.environ.get("API_HOST", "0.0.0.0"),
            port=int(os.environ.get("API_PORT", "8000")),
            reload=os.environ.get("API_RELOAD", "true").lower() == "true",
            log_level=os.environ.get("LOG_LEVEL", "info").lower()
        )
    except Exception as e:
        print(f"❌ Failed to start server: {e}")
        sys.exit(1)


def main():
    """Main startup function"""
    print("AI Art Community Service - Startup Script")
    print("=" * 50)

    # Setup environment
    setup_environment()

    # Check dependencies
    if not check_dependencies():
        sys.exit(1)

    # Start the service
    start_api_server()


if __name__ == "__main__":
    main()
