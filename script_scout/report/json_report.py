# script_scout/report/json_report.py

"""
Генерация JSON-отчёта для проекта ScriptScout.

Сериализация объекта CrawlResult в файл.
"""
import json
from pathlib import Path
from typing import Any, Dict, Optional

from script_scout.crawler.models import CrawlResult


def render_json(
    result: CrawlResult,
    output_path: Path | str,
    *,
    url: Optional[str] = None,
    pretty: bool = True,
) -> Path:
    """
    Сохраняет результат обхода в формате JSON по указанному пути.

    :param result: объект CrawlResult
    :param output_path: путь к JSON-файлу
    :param url: адрес обойдённой страницы, попадает в поле ``url``
    :param pretty: отступ 2 пробела
    :return: Path сохранённого файла

    Пример:
    ```python
    from script_scout.report.json_report import render_json
    report_path = render_json(result, 'reports/report.json', url='https://example.com')
    print(f"JSON report saved to: {report_path}")
    ```
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    data: Dict[str, Any] = result.to_dict()
    if url is not None:
        data = {"url": url, **data}

    with output.open('w', encoding='utf-8') as f:
        json.dump(data, f, ensure_ascii=False, indent=2 if pretty else None)

    return output
