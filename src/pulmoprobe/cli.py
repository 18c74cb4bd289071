from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

from pulmoprobe.client import PredictionClient
from pulmoprobe.encoding import build_payload, encode, validate
from pulmoprobe.schema import FormSchema, SchemaError, diff_schemas, load_schema
from pulmoprobe.settings import Settings

app = typer.Typer(help="Encode intake forms and query the lung cancer risk endpoint.")


def _load(variant: str | None, settings: Settings) -> FormSchema:
    try:
        return load_schema(variant or settings.schema_variant, settings.config_dir)
    except SchemaError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _read_form(path: Path) -> dict[str, str]:
    """Read a form JSON object; every value is kept as the string a form would hold."""
    try:
        payload = json.loads(path.read_text())
    except OSError as exc:
        raise typer.BadParameter(f"Unable to read form: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"Form must be valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise typer.BadParameter("Form must be a JSON object of field values.")
    return {str(key): _form_value(value) for key, value in payload.items()}


def _form_value(value: object) -> str:
    """Render a JSON value the way the form widget would hold it."""
    if isinstance(value, bool):
        return "1" if value else "0"
    if value is None:
        return ""
    return str(value)


def _exit_on_errors(errors: dict[str, str]) -> None:
    if errors:
        for name, message in errors.items():
            typer.echo(f"{name}: {message}", err=True)
        raise typer.Exit(code=1)


@app.command("encode")
def encode_command(
    form_path: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Form JSON file."),
    schema: Optional[str] = typer.Option(None, "--schema", help="Schema variant name."),
) -> None:
    """Validate a form and print its one-hot feature vector."""
    settings = Settings()
    form_schema = _load(schema, settings)
    form = _read_form(form_path)
    _exit_on_errors(validate(form, form_schema))
    typer.echo(json.dumps(encode(form, form_schema), indent=2))


@app.command("predict")
def predict_command(
    form_path: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Form JSON file."),
    schema: Optional[str] = typer.Option(None, "--schema", help="Schema variant name."),
    endpoint: Optional[str] = typer.Option(None, "--endpoint", help="Override the scoring endpoint."),
) -> None:
    """Validate a form, send it to the scoring endpoint and print the result."""
    settings = Settings()
    form_schema = _load(schema, settings)
    form = _read_form(form_path)
    _exit_on_errors(validate(form, form_schema))

    client = PredictionClient(
        endpoint or settings.api_url or form_schema.endpoint,
        path=settings.api_path,
        timeout=settings.request_timeout,
    )
    result = client.predict(build_payload(form, form_schema))
    typer.echo(json.dumps(result.to_dict(), indent=2))
    if not result.ok:
        raise typer.Exit(code=1)


@app.command("diff-schemas")
def diff_schemas_command(
    left: str = typer.Argument(..., help="First schema variant."),
    right: str = typer.Argument(..., help="Second schema variant."),
) -> None:
    """Print every difference between two schema variants."""
    settings = Settings()
    differences = diff_schemas(_load(left, settings), _load(right, settings))
    if not differences:
        typer.echo("Schemas are identical.")
        return
    for difference in differences:
        typer.echo(str(difference))


@app.command("show-schema")
def show_schema_command(
    variant: Optional[str] = typer.Argument(None, help="Schema variant name."),
) -> None:
    """Print the ordered feature keys of a schema variant."""
    form_schema = _load(variant, Settings())
    typer.echo(f"{form_schema.name} ({form_schema.payload_format}) -> {form_schema.endpoint}")
    for key in form_schema.feature_keys():
        typer.echo(key)


if __name__ == "__main__":
    app()
