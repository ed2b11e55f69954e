"""Convenience shim to run the metadata fetch over a list of repositories."""

from __future__ import annotations

import sys

from src.metafetch.runner import main as fetch_main


if __name__ == "__main__":
    args = sys.argv[1:]
    repos = [arg for arg in args if "/" in arg] if args else None
    fetch_main(repos)
