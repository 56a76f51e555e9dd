# main.py
"""
The main entry point for running a game review from a source checkout.
"""
import sys

from game_reviewer.cli import main

if __name__ == "__main__":
    sys.exit(main())
