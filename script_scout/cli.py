#!/usr/bin/env python3
"""
Точка входа для запуска краулера ScriptScout через командную строку.

Команды:
  crawl     Обойти одну страницу и вывести/сохранить найденное
  batch     Обойти страницы из файла заданий (YAML/JSON)
  config    Показать текущую конфигурацию
  init-db   Создать таблицы в базе данных

Общие опции:
  --config PATH        Путь к YAML/JSON-конфигу (default: configs/default.yaml, если есть)
  --database-url DSN   Строка подключения к PostgreSQL (override database_url)
  --log-level LEVEL    Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH      Файл для логов (только stderr, если не указан)
  --log-format FORMAT  Формат логирования

Команда crawl опции:
  --term, -t TEXT      Искомый фрагмент кода (можно несколько раз)
  --domain, -d TEXT    Искомый домен скриптов (можно несколько раз)
  --batch UUID         Идентификатор batch (по умолчанию — новый)
  --tag TEXT           Тег batch (можно несколько раз)
  --region TEXT        Регион, из которого выполняется обход
  --rank INT           Рейтинг сайта
  --record/--no-record Записывать результат в БД (если она настроена)
  --json PATH          Сохранить JSON-отчёт в файл
  --html PATH          Сохранить HTML-отчёт в файл
  --pretty             Преформатировать JSON-вывод (отступ 2)

Пример:
  script_scout crawl https://example.com -t jQuery.fn.jquery -d googletagmanager.com --pretty
"""
import json
import sys
import uuid
from pathlib import Path

import click

from script_scout import __version__
from script_scout.config import load_config, read_mapping
from script_scout.engine import Engine, merge_jobs
from script_scout.exceptions import InvalidRequestError, PageFetchError, StorageError
from script_scout.logger import DEFAULT_FORMAT, init_logging
from script_scout.report.html_report import render_html
from script_scout.report.json_report import render_json
from script_scout.storage.db import ensure_schema
from script_scout.validation import validate_request

CONTEXT_SETTINGS = dict(help_option_names=["--help", "-h"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='ScriptScout, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML/JSON.'
)
@click.option(
    '--database-url', 'database_url',
    default=None,
    envvar='SCRIPT_SCOUT_DATABASE_URL',
    help='Строка подключения к PostgreSQL (override database_url)'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Уровень логирования'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Путь к файлу логов (только stderr, если не указан)'
)
@click.option(
    '--log-format', 'log_format',
    default=DEFAULT_FORMAT,
    show_default=True,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, config_path, database_url, log_level, log_file, log_format):
    """Группа команд ScriptScout CLI."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        cfg = load_config(config_path)
    except Exception as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')
    if database_url:
        cfg = cfg.model_copy(update={'database_url': database_url})
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


@cli.command('crawl', context_settings=CONTEXT_SETTINGS)
@click.argument('url')
@click.option('--term', '-t', 'terms', multiple=True, help='Искомый фрагмент кода')
@click.option('--domain', '-d', 'domains', multiple=True, help='Искомый домен скриптов')
@click.option('--batch', 'batch', default=None, help='UUID batch (по умолчанию — новый)')
@click.option('--tag', 'tags', multiple=True, help='Тег batch')
@click.option('--region', default=None, help='Регион обхода')
@click.option('--rank', type=int, default=None, help='Рейтинг сайта')
@click.option('--record/--no-record', default=True, show_default=True, help='Записать результат в БД')
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить JSON-отчёт в файл'
)
@click.option(
    '--html', 'html_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить HTML-отчёт в файл'
)
@click.option('--pretty', is_flag=True, help='Преформатировать JSON-вывод (отступ 2)')
@click.pass_context
def crawl(ctx, url, terms, domains, batch, tags, region, rank, record, json_output, html_output, pretty):
    """Обойти страницу URL и найти в её скриптах термины и домены."""
    cfg = ctx.obj['config']
    args = {
        'url': url,
        'batch': batch or str(uuid.uuid4()),
        'terms': list(terms),
        'domains': list(domains),
        'tags': list(tags) or None,
        'region': region,
        'rank': rank,
    }
    try:
        request = validate_request(args)
    except InvalidRequestError as e:
        details = '; '.join(f"{err['loc'] or 'request'}: {err['msg']}" for err in e.details.get('errors', []))
        print_error(f'Некорректные аргументы: {details or e}')

    try:
        outcome = Engine(cfg, record=record).run(request)
    except PageFetchError as e:
        print_error(f'Не удалось загрузить страницу: {e}')
    except StorageError as e:
        print_error(f'Ошибка записи результата: {e}')

    if outcome.crawl_id is not None:
        click.echo(f'Crawl id: {outcome.crawl_id}', err=True)

    # Без файлов отчёта печатаем результат в stdout
    if not json_output and not html_output:
        click.echo(outcome.result.json(pretty=pretty))
        return

    if json_output:
        try:
            saved_json = render_json(outcome.result, json_output, url=url, pretty=pretty)
            click.echo(f'JSON report: {saved_json}')
        except Exception as e:
            print_error(f'Ошибка при сохранении JSON: {e}')

    if html_output:
        try:
            saved_html = render_html(outcome.result, html_output, url=url)
            click.echo(f'HTML report: {saved_html}')
        except Exception as e:
            print_error(f'Ошибка при сохранении HTML: {e}')


@cli.command('batch', context_settings=CONTEXT_SETTINGS)
@click.argument('jobs_file', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--record/--no-record', default=True, show_default=True, help='Записать результаты в БД')
@click.pass_context
def batch(ctx, jobs_file, record):
    """Обойти страницы из файла заданий.

    Файл содержит ``defaults`` (общие аргументы, например terms и batch) и
    список ``jobs`` (URL или mapping с аргументами).
    """
    cfg = ctx.obj['config']
    try:
        jobs = merge_jobs(read_mapping(jobs_file))
    except (ValueError, TypeError) as e:
        print_error(f'Ошибка чтения файла заданий: {e}')

    try:
        summary = Engine(cfg, record=record).run_batch(jobs)
    except StorageError as e:
        print_error(f'Ошибка записи результата: {e}')
    click.echo(json.dumps(summary))


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2))


@cli.command('init-db', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def init_db(ctx):
    """Создать таблицы в базе данных."""
    cfg = ctx.obj['config']
    if not cfg.database_url:
        print_error('База данных не настроена: укажите database_url или --database-url')
    try:
        ensure_schema(cfg.database_url)
    except StorageError as e:
        print_error(f'Ошибка создания схемы: {e}')
    click.echo('Schema is up to date')


if __name__ == "__main__":
    cli()
