#!/usr/bin/env python3
"""
Simple launcher for the signal relay server.
This script sets up the Python path correctly and runs the server.
"""
import sys
import os

# Get the directory containing this script
script_dir = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, script_dir)

try:
    from relay_server import run

    print(f"📁 Working directory: {script_dir}")
    run()

except ImportError as e:
    print(f"❌ Import error: {e}")
    print("💡 Make sure aiohttp is installed: pip install -e .")
    sys.exit(1)
except Exception as e:
    print(f"❌ Error starting server: {e}")
    import traceback
    traceback.print_exc()
    sys.exit(1)
