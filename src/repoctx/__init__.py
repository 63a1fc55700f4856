"""repoctx - Repository mirroring and relevance-ranked context selection.

repoctx keeps an idempotent local mirror of a remote git or Subversion
repository and selects a bounded, relevance-ranked subset of its files
for a natural-language query, ready to hand to a text-analysis backend.

Core principles:
- Best Available Data: a failed refresh serves the last synchronized tree
- Bounded Work: every external command has a timeout, every scan a cap
- Per-Project Isolation: operations on one mirror are serialized
- Tool Agnosticism: version-control tools are pluggable adapters
"""

__version__ = "0.1.0"
__author__ = "repoctx Contributors"
