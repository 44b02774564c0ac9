#!/usr/bin/env python3
"""Logo Overlay Studio - Stamp a brand logo onto product photos and export them."""

import argparse
import logging
import sys

from controller import APP_NAME, MainWindow, OverlayApp


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description=APP_NAME)
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--logo", default=None, help="Logo image to load at startup")
    parser.add_argument("images", nargs="*", help="Product photos to load at startup")
    return parser.parse_args(argv)


def main():
    args = parse_args()

    if args.debug:
        logging.basicConfig(level=logging.DEBUG)

    app = OverlayApp(sys.argv)
    app.setApplicationName(APP_NAME)
    window = MainWindow()
    window.show()

    # macOS file-open events (dropping photos on the Dock icon)
    app.file_open_requested.connect(lambda path: window.add_source_files([path]))

    if args.images:
        window.add_source_files(args.images)
    if args.logo:
        window.set_logo_file(args.logo)

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
