# File: script_scout/report/html_report.py
"""script_scout.report.html_report: Генерация HTML-отчёта с помощью Jinja2."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Union

from jinja2 import BaseLoader, Environment, FileSystemLoader, PackageLoader, select_autoescape

from script_scout.crawler.models import CrawlResult

TEMPLATE_NAME = "report.html.j2"


def render_html(
    result: CrawlResult,
    output_path: Union[Path, str],
    template_dir: Union[Path, str, None] = None,
    *,
    url: Optional[str] = None,
) -> Path:
    """Рендерит HTML-отчёт из шаблона и сохраняет его по указанному пути.

    Args:
        result: объект CrawlResult.
        output_path: путь к итоговому HTML-файлу.
        template_dir: директория со своим ``report.html.j2``; по умолчанию
            используется шаблон из пакета.
        url: адрес обойдённой страницы для заголовка отчёта.

    Returns:
        Path до сохранённого HTML-файла.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    loader: BaseLoader
    if template_dir is None:
        loader = PackageLoader("script_scout", "templates")
    else:
        loader = FileSystemLoader(str(template_dir))

    env = Environment(loader=loader, autoescape=select_autoescape(["html", "xml", "j2"]))
    template = env.get_template(TEMPLATE_NAME)

    context: dict[str, Any] = {
        "url": url,
        "terms": result.terms,
        "domains": result.domains,
    }

    output_path.write_text(template.render(**context), encoding="utf-8")
    return output_path
