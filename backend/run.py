#!/usr/bin/env python3
"""
LMS Backend - Startup Script
Run this file to start the server with proper configuration
"""

import os
import sys
from pathlib import Path


def check_environment():
    """Check if environment is properly set up"""
    print("🔍 Checking environment setup...")

    # Check if .env file exists
    env_file = Path(".env")
    if not env_file.exists():
        print("❌ ERROR: .env file not found!")
        print("📝 Please create a .env file with SECRET_KEY, SUPABASE_URL and SUPABASE_KEY")
        return False

    # Check critical environment variables
    from dotenv import load_dotenv
    load_dotenv()

    required_vars = [
        'SECRET_KEY',
        'SUPABASE_URL',
        'SUPABASE_KEY',
    ]

    missing = [var for var in required_vars if not os.getenv(var)]

    if missing:
        print("❌ ERROR: Missing required environment variables:")
        for var in missing:
            print(f"   - {var}")
        print("\n📝 Please update your .env file")
        return False

    print("✅ Environment check passed!")
    return True


def check_dependencies():
    """Check if all dependencies are installed"""
    print("\n🔍 Checking dependencies...")

    try:
        import fastapi
        import uvicorn
        import supabase
        import jose
        import passlib
        print("✅ All core dependencies installed!")
        return True
    except ImportError as e:
        print(f"❌ ERROR: Missing dependency: {e}")
        print("\n📦 Install dependencies with:")
        print("   pip install -e .")
        return False


def print_banner():
    """Print startup banner"""
    from lms.config import settings

    print("=" * 55)
    print(f"   {settings.APP_NAME} Backend Server  v{settings.APP_VERSION}")
    print(f"   Environment: {settings.ENVIRONMENT}")
    print("=" * 55)


def print_startup_info(host: str, port: int):
    """Print startup information"""
    print("\n🚀 Starting server...")
    print("\n📚 Once started, you can access:")
    print(f"   • API Docs (Swagger): http://{host}:{port}/docs")
    print(f"   • API Docs (ReDoc):   http://{host}:{port}/redoc")
    print(f"   • Health Check:       http://{host}:{port}/health")
    print("\n💡 Press CTRL+C to stop the server")
    print("\n" + "=" * 55 + "\n")


def main():
    """Main startup function"""
    # Check environment
    if not check_environment():
        sys.exit(1)

    # Check dependencies
    if not check_dependencies():
        sys.exit(1)

    print_banner()

    # Start the server
    try:
        import uvicorn
        from lms.config import settings

        print_startup_info(settings.host, settings.port)

        uvicorn.run(
            "lms.main:app",
            host=settings.host,
            port=settings.port,
            reload=settings.debug,
            log_level=settings.LOG_LEVEL.lower()
        )
    except KeyboardInterrupt:
        print("\n\n👋 Server stopped by user")
    except Exception as e:
        print(f"\n❌ ERROR: Failed to start server: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
