"""
keyhost CLI

Command-line interface for the key host bootstrap.

Usage:
    python -m keyhost_cli serve [--dev]
    python -m keyhost_cli verify document.b64 --base64 --expected-image-id ami-ea165990
    python -m keyhost_cli inspect document.der
"""

__version__ = "0.1.0"
