"""Version-consistency engine.

- registry: which files carry the version and the rules to find it
- semver: parsing and bump rules
- validator: cross-file consistency check
- backup: byte-exact snapshots for restore
- rewrite: atomic multi-file update plus the header-tag pass
"""

from __future__ import annotations
