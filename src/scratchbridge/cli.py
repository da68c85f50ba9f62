"""Click-based command line interface for scratchbridge."""

from __future__ import annotations

import os

import click

from scratchbridge.core.bridge.chunker import split_numeric_string_into_chunks, transmission_order
from scratchbridge.core.bridge.codec import decode_text, encode_text, is_encodable
from scratchbridge.core.bridge.generator import GeminiAnswerGenerator
from scratchbridge.core.bridge.service import BridgeService
from scratchbridge.core.bridge.service_config import BridgeServiceConfig


def _load_config() -> BridgeServiceConfig:
    config, warnings = BridgeServiceConfig.from_env()
    for message in warnings:
        click.echo(f"warning: {message}", err=True)
    return config


@click.group()
@click.option("--logs-dir", default=None, help="Directory for daily bridge logs.")
@click.pass_context
def main(ctx: click.Context, logs_dir: str | None) -> None:
    if logs_dir:
        os.environ["LOGS_DIR"] = os.path.abspath(logs_dir)
    ctx.obj = {"logs_dir": os.environ.get("LOGS_DIR", "")}


@main.command("version", help="Print scratchbridge version.")
def cmd_version() -> None:
    from scratchbridge import __version__

    click.echo(__version__)


@main.command("run", help="Run the cloud-variable bridge in the foreground.")
def cmd_run() -> None:
    raise SystemExit(BridgeService(_load_config()).run())


@main.command("check-config", help="Show resolved configuration and missing keys.")
def cmd_check_config() -> None:
    config = _load_config()
    click.echo(config.describe())
    missing = config.missing_required()
    if missing:
        raise click.ClickException(f"missing: {', '.join(missing)}")
    click.echo("configuration ok")


@main.command("encode", help="Encode text into cloud-variable digits.")
@click.argument("text")
def cmd_encode(text: str) -> None:
    if not is_encodable(text):
        click.echo("warning: unsupported characters are sent as spaces", err=True)
    click.echo(encode_text(text))


@main.command("decode", help="Decode cloud-variable digits into text.")
@click.argument("digits")
def cmd_decode(digits: str) -> None:
    invalid: list[str] = []
    click.echo(decode_text(digits, warnings=invalid))
    if invalid:
        click.echo(f"warning: invalid codes {', '.join(invalid)}", err=True)


@main.command("chunks", help="Show the response slots a reply would be published as.")
@click.argument("text")
def cmd_chunks(text: str) -> None:
    chunks = split_numeric_string_into_chunks(encode_text(text))
    for var_name, value in reversed(transmission_order(chunks)):
        click.echo(f"{var_name}={value}")


@main.command("ask", help="Send one prompt to the answer generator.")
@click.argument("prompt")
def cmd_ask(prompt: str) -> None:
    config = _load_config()
    if not config.gemini_api_key:
        raise click.ClickException("GEMINI_API_KEY is missing")
    generator = GeminiAnswerGenerator(
        config.gemini_api_key,
        model=config.gemini_model,
        timeout_sec=config.gemini_api_timeout_sec,
    )
    click.echo(generator.generate(prompt))


if __name__ == "__main__":
    main()
