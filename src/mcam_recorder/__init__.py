"""
mcam-recorder - multi-camera recorder with live mosaic preview.
Records one file per camera while previewing a single camera or a grid of all of them.
"""

__version__ = "0.1.0"
__author__ = "mcam-recorder Project"
__license__ = "MIT"
