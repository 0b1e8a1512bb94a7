#!/usr/bin/env python3
"""
Presigned Contract Deployment Script
"""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from hollow_deploy.cli import run

if __name__ == "__main__":
    sys.exit(run())
