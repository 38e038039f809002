#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Lay out, preview and print labels on Bixolon label printers.
"""

import sys

import bixolon_label_layout.cli


if __name__ == "__main__":
	sys.exit(bixolon_label_layout.cli.main())
