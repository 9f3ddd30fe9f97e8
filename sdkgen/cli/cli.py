import json
from datetime import date
from pathlib import Path

import click
from rich import pretty
from rich.console import Console

from sdkgen.config import FallbackMode, get_settings
from sdkgen.description import load_description, processed_checksum, raw_checksum
from sdkgen.errors import CodegenError
from sdkgen.gen_logging import configure_gen_logging
from sdkgen.pipeline import CodegenPipeline, run_prebuild
from sdkgen.postprocess import post_process
from sdkgen.templates import DEFAULT_TEMPLATES_DIR
from sdkgen.upgrade import check_upgrade, run_upgrade
from sdkgen.validation.templates import validate_templates
from sdkgen.verification import verify_description

pretty.install()
console = Console()
err_console = Console(stderr=True)

FALLBACK_CHOICE = click.Choice([mode.value for mode in FallbackMode], case_sensitive=False)


def _today() -> str:
    return date.today().strftime('%Y-%m-%d')


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Show per-file and per-template detail.")
@click.option("-q", "--quiet", is_flag=True, help="Only show warnings and errors.")
@click.pass_context
def cli(context, verbose, quiet):
    context.ensure_object(dict)
    configure_gen_logging(verbose=verbose, quiet=quiet)


@cli.command("detect", help="Detect the description version and the adapter that would be used.")
@click.pass_context
@click.argument("spec_path", type=click.Path(dir_okay=False))
@click.option("--fallback", type=FALLBACK_CHOICE, default=None,
              help="Fallback mode (default: OPENAPI_ADAPTER_FALLBACK or warn).")
def detect(context, spec_path, fallback):
    try:
        with CodegenPipeline(settings=get_settings()) as pipeline:
            detection = pipeline.detect(spec_path, fallback)
            mode = fallback or pipeline.settings.OPENAPI_ADAPTER_FALLBACK.value
        payload = {"specPath": str(spec_path), **detection.to_dict(), "fallbackMode": mode}
        click.echo(json.dumps(payload, indent=2))
    except CodegenError as e:
        err_console.print(f"[{_today()}] Detection failed: {e}", style='red')
        context.exit(1)


@cli.command("prebuild", help="Exit 0 when an adapter explicitly supports the description version.")
@click.pass_context
@click.argument("spec_path", type=click.Path(dir_okay=False))
def prebuild(context, spec_path):
    try:
        supported = run_prebuild(spec_path)
    except CodegenError as e:
        err_console.print(f"[{_today()}] Prebuild check failed: {e}", style='red')
        context.exit(1)
        return
    if not supported:
        err_console.print(f"[{_today()}] No adapter explicitly supports {spec_path}", style='yellow')
        context.exit(1)
    console.print(f"[{_today()}] Prebuild check passed.", style='green')


@cli.command("validate-templates", help="Check that a template directory holds every required template.")
@click.pass_context
@click.argument("template_dir", required=False, default=None)
def validate_templates_cmd(context, template_dir):
    template_dir = Path(template_dir) if template_dir else DEFAULT_TEMPLATES_DIR
    result = validate_templates(template_dir)
    if not result.valid:
        err_console.print(f"[{_today()}] Template validation failed for {template_dir}:", style='red')
        for name in result.missing_templates:
            err_console.print(f"  - {name}", style='red')
        context.exit(1)
    console.print(f"[{_today()}] All templates present in {template_dir}", style='green')


@cli.command("generate", help="Generate a typed client package from an API description.")
@click.pass_context
@click.argument("spec_path", type=click.Path(dir_okay=False))
@click.option("--out", "out_dir", default="generated", help="Output directory (default: ./generated)")
@click.option("--templates", "templates_dir", default=None, help="Template directory (default: built-in set)")
@click.option("--force", is_flag=True, help="Generate even if templates are missing.")
@click.option("--fallback", type=FALLBACK_CHOICE, default=None,
              help="Fallback mode for unsupported versions.")
@click.option("--no-format", "no_format", is_flag=True, help="Skip Black formatting.")
def generate(context, spec_path, out_dir, templates_dir, force, fallback, no_format):
    out_path = Path(out_dir).resolve()
    try:
        with CodegenPipeline(settings=get_settings(), templates_dir=templates_dir) as pipeline:
            result = pipeline.run(
                spec_path,
                out_path,
                force=force,
                fallback_mode=fallback,
                format_code=not no_format,
            )
    except CodegenError as e:
        err_console.print(f"[{_today()}] Generation failed with error(s): {e}", style='red')
        context.exit(1)
        return
    changed = len(result.postprocess.files_changed) if result.postprocess else 0
    console.print(
        f"[{_today()}] Client generated with {result.detection.adapter.name} at {out_path} "
        f"({len(result.files)} files, {changed} post-processed)",
        style='green',
    )


@cli.command("postprocess", help="Run the post-processing transforms over a directory.")
@click.pass_context
@click.argument("directory", type=click.Path(file_okay=False, exists=True))
@click.option("--no-format", "no_format", is_flag=True, help="Skip Black formatting.")
def postprocess_cmd(context, directory, no_format):
    report = post_process(directory, settings=get_settings(), format_code=not no_format)
    console.print(
        f"[{_today()}] Post-processed {report.files_scanned} file(s), {len(report.files_changed)} changed",
        style='green',
    )


@cli.command("checksum", help="Print the raw and processed checksums of a description.")
@click.pass_context
@click.argument("spec_path", type=click.Path(dir_okay=False))
def checksum(context, spec_path):
    try:
        document = load_description(spec_path)
    except CodegenError as e:
        err_console.print(f"[{_today()}] Checksum failed: {e}", style='red')
        context.exit(1)
        return
    click.echo(f"processed: {processed_checksum(document)}")
    click.echo(f"raw: {raw_checksum(document) or '-'}")


@cli.command("verify", help="Check a description against its stored x-spec-checksum.")
@click.pass_context
@click.argument("spec_path", type=click.Path(dir_okay=False))
@click.option("-u", "--update", is_flag=True, help="Rewrite a stale or missing checksum in the description.")
@click.option("-n", "--no-fail", "no_fail", is_flag=True, help="Exit 0 even if the checksum does not match.")
def verify(context, spec_path, update, no_fail):
    try:
        result = verify_description(spec_path, fail_on_mismatch=not no_fail, update=update)
    except CodegenError as e:
        err_console.print(f"[{_today()}] Verification failed: {e}", style='red')
        context.exit(1)
        return

    if result.updated:
        console.print(f"[{_today()}] Checksum updated in {spec_path}", style='green')
    elif result.matches:
        console.print(f"[{_today()}] Checksum verified for {spec_path}", style='green')
    elif result.drifted:
        err_console.print(f"[{_today()}] Checksum mismatch ignored (--no-fail)", style='yellow')
    else:
        console.print(f"[{_today()}] No checksum stored in {spec_path}, nothing to verify", style='yellow')


@cli.command("upgrade", help="Regenerate the client when the newest description changes dialect.")
@click.pass_context
@click.argument("spec_dir", type=click.Path(file_okay=False))
@click.option("--out", "out_dir", default="generated", help="Output directory (default: ./generated)")
@click.option("--templates", "templates_dir", default=None, help="Template directory (default: built-in set)")
@click.option("--force", is_flag=True, help="Regenerate without a dialect change; skip missing templates.")
@click.option("--check-only", "check_only", is_flag=True,
              help="Only report; exit 2 when an upgrade is needed.")
@click.option("--fallback", type=FALLBACK_CHOICE, default=None,
              help="Fallback mode for unsupported versions.")
def upgrade(context, spec_dir, out_dir, templates_dir, force, check_only, fallback):
    try:
        if check_only:
            check = check_upgrade(spec_dir)
            if check.needs_upgrade:
                console.print(
                    f"[{_today()}] Dialect {check.direction} needed: "
                    f"{check.previous_version.version} -> {check.latest_version.version}",
                    style='yellow',
                )
                context.exit(2)
            console.print(f"[{_today()}] No dialect upgrade needed.", style='green')
            return

        result = run_upgrade(
            spec_dir,
            Path(out_dir).resolve(),
            force=force,
            fallback_mode=fallback,
            templates_dir=templates_dir,
            settings=get_settings(),
        )
    except CodegenError as e:
        err_console.print(f"[{_today()}] Upgrade failed: {e}", style='red')
        context.exit(1)
        return

    if result is None:
        console.print(f"[{_today()}] No upgrade needed. Use --force to regenerate anyway.", style='green')
    else:
        console.print(
            f"[{_today()}] Client regenerated with {result.detection.adapter.name} at {result.out_dir}",
            style='green',
        )


def main():
    cli(prog_name="sdkgen")


if __name__ == "__main__":
    main()
