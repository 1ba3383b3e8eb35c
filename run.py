import json
import os
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Optional

import typer
import yaml
from pydantic import ValidationError

from oru_analyzer.commons.errors import ParseError, ReferenceDataError
from oru_analyzer.commons.logger import setup_logging
from oru_analyzer.commons.oru_engine import OruEngine, load_settings

app = typer.Typer(add_completion=False, help="ORU lab report analyzer")

DEFAULT_CONFIG = "oru_analyzer/configs/settings.yaml"


def resource_path(relative_path: str) -> str:
    """Devuelve la ruta absoluta a un recurso, ya sea ejecutando como .exe o en desarrollo"""
    if hasattr(sys, "_MEIPASS"):
        # Si es un ejecutable generado por PyInstaller
        base_path = sys._MEIPASS
    else:
        # junto a este script: vale instalado (site-packages) y en desarrollo
        base_path = os.path.dirname(os.path.abspath(__file__))
    return os.path.join(base_path, relative_path)


def _engine(config: Optional[str]) -> OruEngine:
    config_path = config or resource_path(DEFAULT_CONFIG)
    try:
        settings = load_settings(config_path)
    except (OSError, yaml.YAMLError, ValidationError) as ex:
        typer.echo(f"Error cargando configuración {config_path}: {ex}", err=True)
        raise typer.Exit(code=3)
    setup_logging(settings.paths.logs_root, os.getenv("LOG_LEVEL", settings.logging.level))
    try:
        return OruEngine(settings)
    except ReferenceDataError as ex:
        typer.echo(f"Error cargando datos de referencia: {ex}", err=True)
        raise typer.Exit(code=3)


def _read_message(path: Path) -> str:
    # utf-8-sig: algunos LIS exportan con BOM
    return path.read_text(encoding="utf-8-sig")


@app.command()
def analyze(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Archivo ORU (texto)"),
    config: Optional[str] = typer.Option(None, "--config", help="settings.yaml (por defecto el del paquete)"),
    compact: bool = typer.Option(False, "--compact", help="JSON en una sola línea"),
):
    """Analiza un mensaje ORU e imprime los resultados anormales en JSON."""
    engine = _engine(config)
    try:
        result = engine.analyze(_read_message(path))
    except ParseError as ex:
        typer.echo(f"Error parsing ORU file: {ex}", err=True)
        raise typer.Exit(code=2)
    typer.echo(result.to_json(indent=0 if compact else 2))


@app.command()
def parse(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Archivo ORU (texto)"),
    config: Optional[str] = typer.Option(None, "--config", help="settings.yaml (por defecto el del paquete)"),
):
    """Muestra la estructura intermedia (paciente, médico, grupos) sin evaluar rangos."""
    engine = _engine(config)
    try:
        msg = engine.parse(_read_message(path))
    except ParseError as ex:
        typer.echo(f"Error parsing ORU file: {ex}", err=True)
        raise typer.Exit(code=2)
    typer.echo(json.dumps(asdict(msg), ensure_ascii=False, indent=2))


@app.command()
def lookup(
    name: str = typer.Argument(..., help="Nombre del examen (OBX-3.2)"),
    code: str = typer.Option("", "--code", help="Código del examen (OBX-3.1)"),
    config: Optional[str] = typer.Option(None, "--config", help="settings.yaml (por defecto el del paquete)"),
):
    """Resuelve un nombre/código contra los datos de referencia."""
    engine = _engine(config)
    typer.echo(json.dumps(engine.lookup(name, code), ensure_ascii=False, indent=2))


if __name__ == "__main__":
    app()
