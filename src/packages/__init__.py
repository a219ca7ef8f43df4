"""Installed package management.

- checksums.py: nimble-compatible directory SHA1
- metadata.py: nimblemeta.json records
- lister.py: scan and display of installed packages
- deduper.py: removal of superseded versions
- installer.py: GitHub fetch and install with dependency resolution
"""
