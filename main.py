#!/usr/bin/env python3
"""
Rancher Service Upgrader

Upgrades one service in a Rancher stack, waits for it to become upgraded and
healthy, then finishes the upgrade. With --rollback-on-fail the service is
rolled back when the upgrade does not become healthy in time.

This script supports running directly from a source checkout that uses a
src/ layout: it adds the local `src/` directory to sys.path. For production
use, prefer installing the project and using the `rancher-upgrade` console
script.

Example:
  python3 main.py --rancher-url http://rancher-server:8080/v1 \\
      --access-key KEY --secret-key SECRET \\
      --environment Default --stack web --service frontend --rollback-on-fail
"""

import os
import sys

# Add src/ to path to import modules directly
REPO_ROOT = os.path.dirname(os.path.abspath(__file__))
SRC_PATH = os.path.join(REPO_ROOT, "src")
if SRC_PATH not in sys.path:
    sys.path.insert(0, SRC_PATH)

from cli import main

if __name__ == "__main__":
    sys.exit(main())
