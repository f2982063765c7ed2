#!/usr/bin/env python3
"""
Scheduled folder mirroring for foldersync.

Keeps a replica folder identical to a source folder by running a
synchronization pass every --interval-ms milliseconds:
- Copies new and changed files from source to replica
- Removes replica files and folders that no longer exist in the source
- Logs every action as a structured event

Runs until interrupted (Ctrl+C or SIGTERM); a pass in progress is allowed
to finish first. Use --once to run a single pass, e.g. from cron.

Usage:
    python scripts/scheduled_sync.py --source SRC --replica DST --interval-ms 60000
        [--log-file PATH] [--config CONFIG_PATH] [--once]
"""

import sys

from foldersync.cli import main

if __name__ == "__main__":
    sys.exit(main())
