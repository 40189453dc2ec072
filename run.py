#!/usr/bin/env python3
"""Convenience runner for the GPX track editor command line.

Usage:
    python run.py ride.gpx --quick-fix --output cleaned.gpx
"""
from gpx_track_editor.main import main

if __name__ == "__main__":
    raise SystemExit(main())
