# script_scout/__init__.py
"""
ScriptScout package initializer.
Defines package version and exposes the crawl entry points and CLI.
"""
__version__ = "0.1.0"

from script_scout.crawler.crawler import ScriptCrawler, crawl
from script_scout.crawler.models import CrawlResult

# Expose CLI entry point
from .cli import cli  # экспорт для pytest

__all__ = ["__version__", "ScriptCrawler", "crawl", "CrawlResult", "cli"]
