#!/usr/bin/env python3
"""
hash_tree.py

Hash every file under a directory with live progress.

Examples:
  ./hash_tree.py /path/to/tree
  ./hash_tree.py /path/to/tree --policy abort --json
"""

import sys

from progressed_hashing.cli import main

if __name__ == "__main__":
    sys.exit(main())
