# File: script_scout/report/__init__.py
"""script_scout.report: Отчёты о результате обхода (JSON и HTML) для CLI и тестов."""

from script_scout.report.html_report import render_html
from script_scout.report.json_report import render_json

__all__ = ["render_json", "render_html"]
