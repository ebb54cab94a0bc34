"""
ECSign - Main Entry Point
Console front end for the ECDSA P-256 signing workbench.

Commands:
    ecsign workbench   Interactive key generation, signing and packaging
    ecsign verifier    Interactive external verifier (public data only)
    ecsign verify      One-shot verification; exit 0 VERIFIED, 1 INVALID, 2 ERROR
"""

import logging
from pathlib import Path
from typing import Optional

import click

from .config import WorkbenchConfig
from .exchange.external_verifier import (
    ExternalVerifier,
    Outcome,
    VerificationMode,
    verify_fields,
)
from .exchange.package import SignedPackage
from .errors import VerificationError
from .keys.key_manager import Action
from .workbench import Workbench


EXIT_CODES = {Outcome.VERIFIED: 0, Outcome.INVALID: 1, Outcome.ERROR: 2}

MENU = [
    ("1", "Generate key pair", Action.GENERATE),
    ("2", "Import private JWK", Action.IMPORT_PRIVATE),
    ("3", "Export public key", Action.EXPORT_PUBLIC),
    ("4", "Export private key", Action.EXPORT_PRIVATE),
    ("5", "Sign message", Action.SIGN),
    ("6", "Verify locally", Action.VERIFY),
    ("7", "Make example package", Action.MAKE_PACKAGE),
    ("8", "Open external verifier", Action.EXTERNAL_VERIFIER),
]


def print_header(title: str) -> None:
    """Print a formatted section header."""
    click.echo("\n" + "═" * 70)
    click.echo(f"  {title}")
    click.echo("═" * 70)


def read_text_or_file(value: str) -> str:
    """Return the file's contents if value names a file, else value itself."""
    path = Path(value)
    try:
        if path.is_file():
            return path.read_text(encoding='utf-8')
    except (OSError, ValueError):
        # Long JSON text is not a usable path
        return value
    return value


def mode_for(reserialize: bool) -> VerificationMode:
    return VerificationMode.RESERIALIZE if reserialize else VerificationMode.BYTE_EXACT


@click.group()
@click.option('--verbose', '-v', is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """ECDSA P-256 message signing workbench."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ============================================================================
# Workbench
# ============================================================================

def _show_result(bench: Workbench, result: dict) -> None:
    if 'envelope_json' in result:
        click.echo(f"\n  Envelope:  {result['envelope_json']}")
        click.echo(f"  Signature: {result['signature']}")
    if result.get('public_jwk') is not None:
        click.echo("\n  Public JWK:")
        click.echo(result['public_jwk'].to_json())
    if 'package' in result:
        click.echo("\n  Signed package:")
        click.echo(result['package'].to_json())
    click.echo("\n  Activity log:")
    click.echo(bench.log.render(last_n=5))


def _run_menu_action(bench: Workbench, action: Action) -> None:
    if action is Action.GENERATE:
        result = bench.generate()
    elif action is Action.IMPORT_PRIVATE:
        raw = click.prompt("Paste private JWK", default="", show_default=False)
        result = bench.import_private(read_text_or_file(raw))
    elif action is Action.EXPORT_PUBLIC:
        result = bench.export_public()
    elif action is Action.EXPORT_PRIVATE:
        if not click.confirm("Write the PRIVATE key to disk?", default=False):
            return
        result = bench.export_private()
    elif action is Action.SIGN:
        result = bench.sign(click.prompt("Message", default="", show_default=False))
    elif action is Action.VERIFY:
        result = bench.verify_local()
    elif action is Action.MAKE_PACKAGE:
        result = bench.make_package()
    else:
        result = bench.open_external_verifier()
        if result['success']:
            _verifier_loop(result['verifier'])
    _show_result(bench, result)


@cli.command()
@click.option('--export-dir', type=click.Path(file_okay=False, path_type=Path),
              default=Path("."), show_default=True, help="Where key and package files go.")
@click.option('--example', 'example_path', type=click.Path(dir_okay=False, path_type=Path),
              default=None, help="Hand-off file shared with the external verifier.")
def workbench(export_dir: Path, example_path: Optional[Path]) -> None:
    """Interactive signing workbench."""
    bench = Workbench(WorkbenchConfig(export_dir=export_dir, example_path=example_path))
    print_header("ECDSA P-256 SIGNING WORKBENCH")

    while True:
        enabled = bench.enabled_actions()
        click.echo("")
        for key, label, action in MENU:
            marker = " " if action in enabled else "x"
            click.echo(f"  [{key}]{marker} {label}")
        click.echo("  [q]  Quit")

        choice = click.prompt("Select", default="q", show_default=False).strip().lower()
        if choice == "q":
            break
        selected = next((a for k, _, a in MENU if k == choice), None)
        if selected is None:
            click.echo("  Unknown option.")
            continue
        _run_menu_action(bench, selected)

    bench.session.clear()


# ============================================================================
# External verifier
# ============================================================================

def _verifier_loop(verifier: ExternalVerifier) -> None:
    print_header("EXTERNAL SIGNATURE VERIFIER")
    while True:
        click.echo("\n  [s] Signature  [p] Public key  [m] Message  "
                   "[l] Load example  [v] Verify  [q] Back")
        choice = click.prompt("Select", default="q", show_default=False).strip().lower()
        if choice == "q":
            return
        if choice == "s":
            verifier.set_fields(signature=click.prompt("Signature (Base64)"))
        elif choice == "p":
            verifier.set_fields(public_key=read_text_or_file(
                click.prompt("Public key (JWK text or file)")))
        elif choice == "m":
            verifier.set_fields(message=read_text_or_file(
                click.prompt("Message JSON (text or file)")))
        elif choice == "l":
            notice = verifier.load_example()
            if notice:
                click.echo(f"  {notice}")
            else:
                click.echo(f"  Signature:  {verifier.fields.signature}")
                click.echo(f"  Public key:\n{verifier.fields.public_key}")
                click.echo(f"  Message:    {verifier.fields.message}")
        elif choice == "v":
            click.echo(f"\n  {verifier.verify()}")
        else:
            click.echo("  Unknown option.")


@cli.command()
@click.option('--example', 'example_path', type=click.Path(dir_okay=False, path_type=Path),
              default=None, help="Signed package file for 'Load example'.")
@click.option('--reserialize', is_flag=True,
              help="Verify the re-serialized message JSON instead of the exact text.")
def verifier(example_path: Optional[Path], reserialize: bool) -> None:
    """Interactive external verifier."""
    _verifier_loop(ExternalVerifier(example_path=example_path, mode=mode_for(reserialize)))


@cli.command()
@click.option('--signature', default=None, help="Base64 signature.")
@click.option('--public-key', default=None, help="Public JWK as text or a file path.")
@click.option('--message', default=None, help="Message JSON as text or a file path.")
@click.option('--package', 'package_path',
              type=click.Path(exists=True, dir_okay=False, path_type=Path),
              default=None, help="Signed package file supplying all three fields.")
@click.option('--reserialize', is_flag=True,
              help="Verify the re-serialized message JSON instead of the exact text.")
@click.pass_context
def verify(ctx: click.Context, signature: Optional[str], public_key: Optional[str],
           message: Optional[str], package_path: Optional[Path], reserialize: bool) -> None:
    """Verify a signature from public data; prints VERIFIED, INVALID or ERROR."""
    if package_path is not None:
        try:
            package = SignedPackage.from_json(package_path.read_text(encoding='utf-8'))
        except (VerificationError, OSError, UnicodeDecodeError) as exc:
            click.echo(f"ERROR: {exc}")
            ctx.exit(EXIT_CODES[Outcome.ERROR])
        signature = signature or package.signature
        public_key = public_key or package.public_key_jwk.to_json()
        message = message or package.serialized_message

    report = verify_fields(
        signature or "",
        read_text_or_file(public_key) if public_key else "",
        read_text_or_file(message) if message else "",
        mode_for(reserialize),
    )
    click.echo(str(report))
    ctx.exit(EXIT_CODES[report.outcome])


def main():
    """Main entry point for ECSign."""
    cli()


if __name__ == "__main__":
    main()
