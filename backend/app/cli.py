"""CLI 命令列工具

提供資料庫初始化、快取清理與手動產生報告等命令列功能。
"""

import asyncio
from datetime import datetime
from typing import Optional

import click

from app.database import SessionLocal, init_db
from app.errors import WeatherReportError
from app.logging_config import setup_logging
from app.repositories import SqlReportRepository, SqlWeatherCacheRepository
from app.services.coalescer import CoalescingWeatherSource
from app.services.openweather import OpenWeatherClient
from app.services.report import ReportService


def _build_service(db) -> ReportService:
    return ReportService(
        reports=SqlReportRepository(db),
        weather_cache=SqlWeatherCacheRepository(db),
        weather_source=CoalescingWeatherSource(OpenWeatherClient.from_settings()),
    )


@click.group()
def cli():
    """天氣報告 CLI 工具"""
    setup_logging()


@cli.command()
def init_database():
    """初始化資料庫表"""
    click.echo("正在初始化資料庫...")
    init_db()
    click.echo("資料庫初始化完成！")


@cli.command()
def purge_cache():
    """刪除已過期的天氣快取"""
    init_db()

    with SessionLocal() as db:
        deleted = asyncio.run(_build_service(db).purge_expired_cache())

    click.echo(f"已刪除 {deleted} 筆過期快取")


@cli.command()
@click.option(
    "--timestamp",
    type=click.DateTime(formats=["%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M:%S"]),
    default=None,
    help="觀測時間（UTC），未指定時使用目前時間",
)
def generate_report(timestamp: Optional[datetime]):
    """產生一份天氣報告"""
    init_db()

    with SessionLocal() as db:
        try:
            report = asyncio.run(_build_service(db).generate_report(timestamp))
        except WeatherReportError as e:
            raise click.ClickException(f"[{e.code}] {e.message}") from e

    click.echo("報告產生完成！")
    click.echo(f"  ID: {report.id}")
    click.echo(f"  觀測時間: {report.timestamp.isoformat()}")
    click.echo(f"  溫度: {report.temperature} °C")
    click.echo(f"  氣壓: {report.pressure} hPa")
    click.echo(f"  濕度: {report.humidity} %")
    click.echo(f"  雲量: {report.cloud_cover} %")


if __name__ == "__main__":
    cli()
