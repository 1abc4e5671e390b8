#!/usr/bin/env python
"""
LineBoard - Production Server Launcher

This script starts the production server using Waitress (Windows-compatible).
For Linux/Unix servers, you can also use Gunicorn.

Usage:
    python run_production.py

Environment Variables (set in .env file):
    - SECRET_KEY: Secret key (required, generate random string)
    - LOCAL_STORAGE_DIR: Directory for lines/work order JSON state (recommended)
    - OUTPUT_FOLDER: Directory for exported workbooks
    - TOTAL_TROLLEYS: Facility trolley ceiling (default: 20)
    - WORK_DAY_START / WORK_DAY_END: Start window, HH:MM (default: 07:30 / 16:30)
    - WORKING_DAYS: Comma list of weekdays, 0=Mon (default: every day)
    - HOST: Server host (default: 0.0.0.0)
    - PORT: Server port (default: 5000)
"""

import os
import sys

# Add backend to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'backend'))

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Verify required settings
if os.environ.get('SECRET_KEY', '').startswith('dev-') or not os.environ.get('SECRET_KEY'):
    print("=" * 60)
    print("WARNING: No SECRET_KEY set in environment!")
    print("Please set a random SECRET_KEY in your .env file.")
    print("Generate one with: python -c \"import secrets; print(secrets.token_hex(32))\"")
    print("=" * 60)
    sys.exit(1)

if not os.environ.get('LOCAL_STORAGE_DIR'):
    print("=" * 60)
    print("WARNING: LOCAL_STORAGE_DIR is not set!")
    print("Lines and work orders will be lost when the server stops.")
    print("=" * 60)
    # Don't exit, but warn

# Set production environment
os.environ['FLASK_ENV'] = 'production'
os.environ['FLASK_DEBUG'] = 'false'

# Import and run
from app import app, run_production

if __name__ == '__main__':
    run_production()
