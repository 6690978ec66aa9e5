"""
RosterScan - AI extraction of performance-review rosters into rating tables.

Example:
    >>> from rosterscan.domains.orchestration import ExtractionPipeline
    >>> pipeline = ExtractionPipeline(loader, extractor)
    >>> run = await pipeline.run(files)
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
