"""
Migration Toolkit

Moves content items, language variants and assets between content
environments while keeping the references between them intact.

Supports:
- Export of selected content to a zip archive, references named by codename
- Import of an archive into a target environment, references rewritten to target ids
- Direct migration between two environments
- Workflow step restoration through the shortest transition path
- Bounded concurrency with retries of rate limited requests
"""

__version__ = "0.1.0"
