#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Lay out repeated barcode images on a printable A4 300 DPI sheet.
"""

# local repo modules
import barcode_sheet_generator.cli


if __name__ == "__main__":
	barcode_sheet_generator.cli.main()
