from __future__ import annotations

import json
import logging
import uuid
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, List, Optional

import jsonschema
import typer
import yaml

from payloadtools.config import init_config, load_config
from payloadtools.csvpipe.defaults import default_template
from payloadtools.csvpipe.emit import dumps_document, emit_documents
from payloadtools.csvpipe.loader import read_csv_file
from payloadtools.csvpipe.mapping import (
    bindings_for_headers,
    build_mapping,
    mapping_to_dict,
    suggest_targets,
    validate_mapping,
)
from payloadtools.csvpipe.merge import preview_document, transform_all
from payloadtools.csvpipe.paths import format_path
from payloadtools.csvpipe.template import (
    extract_additional_fields,
    extract_template_fields,
    load_template,
    template_field_catalog,
)
from payloadtools.csvpipe.types import MappingTable
from payloadtools.csvpipe.validate import validate_doc, validate_mapping_dict
from payloadtools.data.io import history_to_csv, load_history, record_history
from payloadtools.errors import MappingNotFoundError, PayloadToolsError
from payloadtools.log import get_logger
from payloadtools.schemas.models import AppConfig, HistoryEntry
from payloadtools.store.repository import (
    MappingRepository,
    SavedMapping,
    YamlMappingRepository,
    new_saved_mapping,
    renamed,
)
from payloadtools.transport.sftp import check_connection, upload

app = typer.Typer(help="payload-tools CLI: map CSV columns onto JSON payload templates")
mappings_app = typer.Typer(help="Saved mapping tables")
history_app = typer.Typer(help="Upload history")
app.add_typer(mappings_app, name="mappings")
app.add_typer(history_app, name="history")


# ---- shared helpers ----

class _State:
    config_path: Optional[Path] = None


_state = _State()


def _config() -> AppConfig:
    return load_config(_state.config_path)


@contextmanager
def _reported():
    try:
        yield
    except jsonschema.ValidationError as e:
        typer.secho(f"Error: output fails schema: {e.message}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    except (PayloadToolsError, ValueError, FileNotFoundError) as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


def _now() -> str:
    return datetime.now().isoformat(timespec="seconds")


def _read_template(template: Optional[Path]) -> Optional[Any]:
    if template is None:
        return None
    return load_template(Path(template).read_text(encoding="utf-8"))


def _read_mapping_file(path: Path) -> MappingTable:
    try:
        data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValueError(f"{path}: invalid YAML") from e
    validate_mapping_dict(data)
    return build_mapping(data)


def _resolve(mapping: Optional[Path], saved: Optional[str], template: Optional[Path]):
    """Pick (table, template doc, field catalog) from files or a saved mapping."""
    if (mapping is None) == (saved is None):
        raise ValueError("Pass exactly one of MAPPING or --saved")
    uploaded = _read_template(template)
    if saved is not None:
        entry = _load_saved(_repo(), saved)
        table = entry.table
        if uploaded is None:
            uploaded = entry.template
    else:
        table = _read_mapping_file(mapping)
    doc = uploaded if uploaded is not None else default_template()
    return table, doc, template_field_catalog(uploaded)


def _field_dict(f) -> dict:
    return {
        "path": format_path(f.path),
        "type": f.value_type,
        "example": f.example,
        "required": f.required,
        "description": f.description,
    }


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML config file"),
):
    get_logger(logging.DEBUG if verbose else logging.WARNING)
    _state.config_path = config


# ---- commands ----

@app.command()
def init(base_dir: Path = typer.Argument(Path("."), help="Where to write starter files")):
    """Write a starter config, example mapping and the default template."""
    out = init_config(str(base_dir))
    typer.echo(f"Wrote starter files to {out}")


@app.command()
def fields(
    template: Optional[Path] = typer.Argument(None, help="Template JSON (default: built-in)"),
    additional: bool = typer.Option(False, "--additional", help="Only fields the built-in template lacks"),
):
    """List the addressable fields of a template as JSON."""
    with _reported():
        doc = _read_template(template)
        if doc is None:
            doc = default_template()
        found = extract_additional_fields(doc) if additional else extract_template_fields(doc)
        typer.echo(json.dumps([_field_dict(f) for f in found], indent=2))


@app.command()
def suggest(
    csv: Path = typer.Argument(..., help="Input CSV"),
    template: Optional[Path] = typer.Option(None, "--template", "-t"),
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="Write mapping YAML here"),
    name: Optional[str] = typer.Option(None, "--name"),
):
    """Draft a mapping by matching CSV headers to field names."""
    with _reported():
        doc = read_csv_file(csv)
        catalog = template_field_catalog(_read_template(template))
        table = suggest_targets(bindings_for_headers(doc.headers), catalog)
        table.name = name
        text = yaml.safe_dump(mapping_to_dict(table), sort_keys=False)
        if out is None:
            typer.echo(text)
        else:
            out.write_text(text, encoding="utf-8")
            bound = sum(1 for b in table if b.target_path is not None)
            typer.echo(f"Wrote {out} ({bound}/{len(table)} header(s) matched)")


@app.command()
def validate(
    mapping: Optional[Path] = typer.Argument(None, help="Mapping YAML"),
    saved: Optional[str] = typer.Option(None, "--saved", help="Saved mapping id or name"),
    template: Optional[Path] = typer.Option(None, "--template", "-t"),
):
    """Check that every required field has a complete binding."""
    with _reported():
        table, _, catalog = _resolve(mapping, saved, template)
        result = validate_mapping(table, catalog)
    if result.valid:
        typer.secho("Mapping is complete", fg=typer.colors.GREEN)
        return
    for p in result.missing_required_paths:
        typer.echo(f"Missing mapping for: {format_path(p)}")
    raise typer.Exit(code=1)


@app.command()
def preview(
    csv: Path = typer.Argument(..., help="Input CSV"),
    mapping: Optional[Path] = typer.Argument(None, help="Mapping YAML"),
    saved: Optional[str] = typer.Option(None, "--saved", help="Saved mapping id or name"),
    template: Optional[Path] = typer.Option(None, "--template", "-t"),
):
    """Merge the first CSV row and print the document."""
    with _reported():
        table, doc, catalog = _resolve(mapping, saved, template)
        merged = preview_document(doc, table, read_csv_file(csv), catalog)
        if merged is None:
            raise ValueError("No data to transform")
        typer.echo(dumps_document(merged, indent=_config().output.indent))


@app.command()
def transform(
    csv: Path = typer.Argument(..., help="Input CSV"),
    mapping: Optional[Path] = typer.Argument(None, help="Mapping YAML"),
    saved: Optional[str] = typer.Option(None, "--saved", help="Saved mapping id or name"),
    template: Optional[Path] = typer.Option(None, "--template", "-t"),
    outdir: Path = typer.Option(Path("out"), "--outdir", "-o"),
    combined: Optional[bool] = typer.Option(None, "--combined/--per-row", help="One JSON array vs one file per row"),
    pattern: Optional[str] = typer.Option(None, "--pattern", help="Jinja filename pattern"),
    schema: Optional[Path] = typer.Option(None, "--schema", help="JSON Schema every document must satisfy"),
    strict: bool = typer.Option(False, "--strict", help="Refuse to run when required fields are unmapped"),
    dry_run: bool = typer.Option(False, "--dry-run"),
):
    """Merge every CSV row and write the JSON documents."""
    with _reported():
        cfg = _config()
        table, doc, catalog = _resolve(mapping, saved, template)
        if strict:
            result = validate_mapping(table, catalog)
            if not result.valid:
                missing = ", ".join(format_path(p) for p in result.missing_required_paths)
                raise ValueError(f"Invalid mapping configuration, missing: {missing}")
        docs = transform_all(doc, table, read_csv_file(csv), catalog)
        if schema is not None:
            for d in docs:
                validate_doc(d, str(schema))
        rendered = emit_documents(
            docs,
            outdir,
            csv.stem,
            combined=cfg.output.combined if combined is None else combined,
            pattern=pattern or cfg.output.filename_pattern,
            indent=cfg.output.indent,
            manifest={"csv": str(csv), "mapping": table.name or (str(mapping) if mapping else saved)},
            dry_run=dry_run,
        )
    if dry_run:
        for name, text in rendered.items():
            typer.echo(f"--- {name}")
            typer.echo(text)
        return
    typer.secho(f"Wrote {len(rendered)} file(s) to {outdir}", fg=typer.colors.GREEN)


@app.command("upload")
def upload_cmd(
    files: List[Path] = typer.Argument(..., help="JSON files to push"),
    mapping_name: Optional[str] = typer.Option(None, "--mapping-name", help="Recorded in history"),
):
    """Upload JSON files to the configured SFTP server."""
    with _reported():
        cfg = _config()
        if cfg.sftp is None:
            raise ValueError("no sftp section in config")

    failures = 0
    for path in files:
        entry = HistoryEntry(
            id=uuid.uuid4().hex[:12],
            filename=path.name,
            status="created",
            created_at=_now(),
            mapping_name=mapping_name,
        )
        try:
            remote = upload(path.read_text(encoding="utf-8"), path.name, cfg.sftp)
        except (PayloadToolsError, OSError) as e:
            failures += 1
            entry = entry.model_copy(update={"status": "failed", "error_message": str(e), "processed_at": _now()})
            typer.secho(f"FAILED {path.name}: {e}", fg=typer.colors.RED, err=True)
        else:
            entry = entry.model_copy(update={"status": "processed", "remote_path": remote, "processed_at": _now()})
            typer.echo(f"{path.name} -> {remote}")
        record_history(cfg.history_path, entry)

    if failures:
        raise typer.Exit(code=1)


@app.command("check-connection")
def check_connection_cmd():
    """Open and close an SFTP session with the configured server."""
    with _reported():
        cfg = _config()
        if cfg.sftp is None:
            raise ValueError("no sftp section in config")
        check_connection(cfg.sftp)
    typer.secho(f"Connected to {cfg.sftp.host}:{cfg.sftp.port}", fg=typer.colors.GREEN)


# ---- saved mappings ----

def _repo() -> YamlMappingRepository:
    return YamlMappingRepository(Path(_config().mappings_dir))


def _load_saved(repo: MappingRepository, ref: str) -> SavedMapping:
    """Look a saved mapping up by id, falling back to its name."""
    try:
        return repo.load(ref)
    except MappingNotFoundError:
        found = repo.find_by_name(ref)
        if found is None:
            raise
        return found


@mappings_app.command("save")
def mappings_save(
    name: str = typer.Argument(...),
    mapping: Path = typer.Argument(..., help="Mapping YAML"),
    template: Optional[Path] = typer.Option(None, "--template", "-t", help="Store this template with it"),
):
    with _reported():
        saved = new_saved_mapping(name, _read_mapping_file(mapping), _read_template(template))
        _repo().save(saved)
    typer.echo(saved.id)


@mappings_app.command("list")
def mappings_list():
    with _reported():
        items = _repo().list()
    for m in items:
        typer.echo(f"{m.id}  {m.name}  {len(m.table)} binding(s)  {m.created_at}")


@mappings_app.command("show")
def mappings_show(mapping_id: str = typer.Argument(...)):
    with _reported():
        m = _load_saved(_repo(), mapping_id)
    typer.echo(yaml.safe_dump(mapping_to_dict(m.table), sort_keys=False))


@mappings_app.command("rename")
def mappings_rename(mapping_id: str = typer.Argument(...), name: str = typer.Argument(...)):
    with _reported():
        repo = _repo()
        repo.save(renamed(_load_saved(repo, mapping_id), name))
    typer.echo(f"Renamed {mapping_id} to {name}")


@mappings_app.command("delete")
def mappings_delete(mapping_id: str = typer.Argument(...)):
    with _reported():
        repo = _repo()
        repo.delete(_load_saved(repo, mapping_id).id)
    typer.echo(f"Deleted {mapping_id}")


# ---- history ----

@history_app.command("list")
def history_list():
    with _reported():
        entries = load_history(_config().history_path)
    for e in entries:
        line = f"{e.created_at}  {e.status:<9}  {e.filename}"
        if e.remote_path:
            line += f"  -> {e.remote_path}"
        if e.error_message:
            line += f"  ({e.error_message})"
        typer.echo(line)


@history_app.command("export")
def history_export(out_csv: Path = typer.Option(Path("history.csv"), "--out", "-o", help="Output CSV")):
    with _reported():
        n = history_to_csv(_config().history_path, str(out_csv))
    typer.secho(f"Wrote {out_csv} ({n} rows)", fg=typer.colors.GREEN)


if __name__ == "__main__":
    app()
