#!/usr/bin/env python3
"""
Polybot Dashboard

Run this directly:
    python run_dashboard.py
    python run_dashboard.py --port 3000
"""
import sys
sys.path.insert(0, "src")

from polybot.dashboard import run_dashboard

if __name__ == "__main__":
    import argparse
    parser = argparse.ArgumentParser(description="Polybot Dashboard")
    parser.add_argument("--port", type=int, default=8050, help="Port to run on")
    parser.add_argument("--role", choices=["admin", "viewer"], default=None, help="Sync role")
    args = parser.parse_args()
    run_dashboard(port=args.port, role=args.role)
