#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Tile a square magnet design onto a printable PDF sheet.
"""

import sys

import magnet_sheet_maker.cli


if __name__ == "__main__":
	sys.exit(magnet_sheet_maker.cli.main())
