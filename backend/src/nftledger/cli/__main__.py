"""CLI entry point for nftledger.cli module.

Enables execution via: python -m nftledger.cli
"""

from nftledger.cli.index_events import main

if __name__ == "__main__":
    raise SystemExit(main())
