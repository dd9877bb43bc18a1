import asyncio
import json
import os
import sys
from typing import Optional

import typer
import yaml

from docintake.commons.logger import setup_logging
from docintake.commons.types import Settings
from docintake.resolvers.base import ClientResolver, NullResolver
from docintake.resolvers.directory import DirectoryResolver
from docintake.services.import_service import ImportService
from docintake.services.inbox_service import InboxService
from docintake.services.scan_service import ScanService, to_scan_payload

app = typer.Typer(add_completion=False, help="Document Intake Service")

DEFAULT_CFG = "docintake/configs/settings.yaml"


def resource_path(relative_path: str) -> str:
    """Devuelve la ruta absoluta a un recurso, ya sea ejecutando como .exe o en desarrollo"""
    if hasattr(sys, "_MEIPASS"):
        # Si es un ejecutable generado por PyInstaller
        base_path = sys._MEIPASS
    else:
        base_path = os.path.abspath(".")

    return os.path.join(base_path, relative_path)


def load_cfg(path: str = DEFAULT_CFG) -> Settings:
    config_path = resource_path(path)
    if not os.path.exists(config_path):
        # sin archivo: valores por defecto
        return Settings()
    with open(config_path, "r", encoding="utf-8") as f:
        return Settings.model_validate(yaml.safe_load(f) or {})


def build_resolver(cfg: Settings) -> ClientResolver:
    if cfg.resolver.type == "file" and cfg.resolver.clients_file:
        return DirectoryResolver.from_file(resource_path(cfg.resolver.clients_file))
    return NullResolver()


def build_scan_service(cfg: Settings) -> ScanService:
    return ScanService(
        resolver=build_resolver(cfg),
        resolver_timeout=cfg.resolver.timeout_sec,
        low_quality_threshold=cfg.scan.low_quality_threshold,
        max_depth=cfg.scan.max_depth,
    )


def build_import_service(cfg: Settings) -> ImportService:
    return ImportService(
        max_sample_rows=cfg.forms.max_sample_rows,
        large_form_threshold=cfg.forms.large_form_threshold,
    )


def _echo(data: dict):
    typer.echo(json.dumps(data, ensure_ascii=False, indent=2))


@app.command()
def scan(
    path: str = typer.Argument(..., help="Documento de resultados a procesar"),
    config: str = typer.Option(DEFAULT_CFG, help="Ruta al settings.yaml"),
):
    """Extrae campos e identidad de un documento de resultados."""
    cfg = load_cfg(config)
    logger = setup_logging(cfg.paths.logs_root, os.getenv("LOG_LEVEL", "INFO"))
    logger.info(f"Procesando documento {path}")
    result = asyncio.run(build_scan_service(cfg).process_path(path))
    _echo(to_scan_payload(result))
    if not result.success:
        raise typer.Exit(code=1)


@app.command("import-form")
def import_form(
    path: str = typer.Argument(..., help="Documento a importar como plantilla"),
    config: str = typer.Option(DEFAULT_CFG, help="Ruta al settings.yaml"),
):
    """Convierte un documento en una plantilla de formulario."""
    cfg = load_cfg(config)
    logger = setup_logging(cfg.paths.logs_root, os.getenv("LOG_LEVEL", "INFO"))
    logger.info(f"Importando formulario {path}")
    result = build_import_service(cfg).import_path(path)
    _echo(result.to_payload())
    if not result.success:
        raise typer.Exit(code=1)


@app.command()
def watch(
    mode: Optional[str] = typer.Option(None, help="scan | form (por defecto el de settings.yaml)"),
    once: bool = typer.Option(False, help="Procesa solo el backlog y termina"),
    config: str = typer.Option(DEFAULT_CFG, help="Ruta al settings.yaml"),
):
    """
    Procesa la carpeta de entrada.
    - Primero el backlog existente.
    - Luego queda escuchando nuevos archivos (salvo --once).
    """
    cfg = load_cfg(config)
    logger = setup_logging(cfg.paths.logs_root, os.getenv("LOG_LEVEL", "INFO"))
    logger.info("Iniciando lectura de documentos pendientes por procesar")
    svc = InboxService(
        cfg.paths,
        mode=mode or cfg.inbox.mode,
        scan_service=build_scan_service(cfg),
        import_service=build_import_service(cfg),
    )
    patterns = cfg.inbox.filename_glob

    async def _amain():
        if once:
            outputs = await svc.process_backlog(patterns)
            logger.info(f"Backlog terminado: {len(outputs)} documento(s)")
            return
        await svc.run_watch(patterns)

    asyncio.run(_amain())


if __name__ == "__main__":
    app()
