#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
A minimal setup.py file that defers to pyproject.toml for configuration.
Kept for packaging tools that still invoke setup.py directly.
"""

import setuptools

if __name__ == "__main__":
    # No arguments: metadata and dependencies come from pyproject.toml
    setuptools.setup()
