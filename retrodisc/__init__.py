"""
Retrodisc - CUE/BIN Track Geometry & DAT Verification Toolkit

A Python-based tool to merge and split multi-track CD dumps, convert
CloneCD control files to cue sheets, and identify extracted dumps against
Redump/Logiqx DAT catalogues.
"""

__version__ = "0.3.0"
__author__ = "jbruns"
