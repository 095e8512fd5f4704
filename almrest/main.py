"""
Copyright (c) 2025 Eric C. Mumford (@heymumford)
This file is part of ALMREST, licensed under the MIT License.
See LICENSE file for details.
"""

from almrest.cli import app


def main():
    """Main entry point for ALMREST application."""
    app()


if __name__ == "__main__":
    main()
