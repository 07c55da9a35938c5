"""CLI interface for cascading field extraction"""
import asyncio
import json
import logging
import time
from pathlib import Path
from typing import List, Optional

import click

from .config import Settings, load_settings
from .extractor import FieldExtractor
from .folder_scanner import FolderScanner, scan_folder
from .llm_client import is_valid_anthropic_key, is_valid_gemini_key, is_valid_openai_key, key_status
from .models import ExtractionRequest, ExtractionResult, FieldSpec
from .text_extractor import TextExtractor

logger = logging.getLogger(__name__)


def load_fields(fields_file: Optional[Path], fields_json: Optional[str]) -> List[FieldSpec]:
    """Load field specs from a JSON file or string: a list of {name, displayName, description}"""
    if fields_file:
        with open(fields_file, 'r', encoding='utf-8') as f:
            raw = json.load(f)
    else:
        raw = json.loads(fields_json)
    if isinstance(raw, dict):
        # {"field_name": "description"} shorthand
        raw = [{"name": name, "description": description} for name, description in raw.items()]
    return [FieldSpec.from_dict(item) for item in raw]


def save_results(output_dir: Path, results: List[ExtractionResult]) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    for result in results:
        output_path = output_dir / f"{Path(result.file_name).stem}_results.json"
        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(result.to_dict(), f, indent=2, ensure_ascii=False)

    combined_path = output_dir / "all_results.json"
    with open(combined_path, 'w', encoding='utf-8') as f:
        json.dump([r.to_dict() for r in results], f, indent=2, ensure_ascii=False)
    return combined_path


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Verbose output')
@click.pass_context
def main(ctx, verbose: bool):
    """Extract structured fields from PDF documents."""
    settings = load_settings()
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, settings.log_level, logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    ctx.obj = settings


@main.command()
@click.argument('folder', type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option('--fields-file', '-f',
              type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help='JSON file with the fields to extract')
@click.option('--fields-json', '-j',
              help='JSON string with the fields to extract (if fields-file not provided)')
@click.option('--document-type', '-t', default='general', show_default=True,
              help='Document type tag, e.g. CoF, Invoice, Contract')
@click.option('--output-dir', '-o',
              type=click.Path(file_okay=False, path_type=Path),
              help='Directory to save extraction results')
@click.option('--max-files', '-m', type=int, default=None,
              help='Maximum number of documents to process')
@click.option('--workers', '-w', type=int, default=1, show_default=True,
              help='Documents processed concurrently')
@click.pass_obj
def extract(settings: Settings, folder: Path, fields_file: Path, fields_json: str,
            document_type: str, output_dir: Path, max_files: int, workers: int):
    """
    Extract fields from every PDF under FOLDER.

    \b
    Examples:
    pdf-extract extract ./docs --fields-file cof_fields.json --document-type CoF -o results
    pdf-extract extract ./docs -j '{"invoice_number": "Invoice number", "total_amount": "Total due"}'
    """
    if not fields_file and not fields_json:
        raise click.UsageError("Must provide either --fields-file or --fields-json")
    try:
        fields = load_fields(fields_file, fields_json)
    except (json.JSONDecodeError, KeyError, TypeError) as e:
        raise click.BadParameter(f"Invalid fields definition: {e}")

    scanner = FolderScanner(max_depth=settings.max_depth)
    files = scan_folder(folder, max_files or settings.max_files, scanner)
    if not files:
        click.echo(f"No PDF files found in {folder}", err=True)
        return
    click.echo(f"Found {len(files)} PDF file(s)")

    text_extractor = TextExtractor()
    requests = []
    for document in text_extractor.process_many(f.path for f in files):
        if not document.success:
            # Empty text sends the document to OCR
            click.echo(f"  Text conversion failed for {document.file_name}, will try OCR: {document.error}",
                       err=True)
        requests.append(ExtractionRequest(
            document_text=document.text,
            fields=fields,
            file_name=document.file_name,
            document_type=document_type,
            document_path=document.file_path,
        ))

    extractor = FieldExtractor.from_settings(settings)
    start_ts = time.perf_counter()
    results = asyncio.run(extractor.batch_extract(requests, max_workers=workers))
    elapsed_s = time.perf_counter() - start_ts

    for result in results:
        status = 'ok' if result.success else 'failed'
        click.echo(f"{result.file_name}: {status} | {result.extracted_field_count}/{result.total_fields} "
                   f"fields | method: {result.method}")
        if result.error:
            click.echo(f"  Error: {result.error}", err=True)
        logger.debug(json.dumps(result.data, ensure_ascii=False))

    succeeded = sum(1 for r in results if r.success)
    click.echo(f"\nProcessed {len(results)} document(s), {succeeded} successful, in {elapsed_s:.2f}s")

    if output_dir and results:
        combined_path = save_results(output_dir, results)
        click.echo(f"Combined results saved to: {combined_path}")


@main.command('check-keys')
@click.pass_obj
def check_keys(settings: Settings):
    """Check the format of the configured provider API keys."""
    checks = [
        ('GOOGLE_GEMINI_API_KEY', settings.gemini_api_key, is_valid_gemini_key),
        ('OPENAI_API_KEY', settings.openai_api_key, is_valid_openai_key),
        ('ANTHROPIC_API_KEY', settings.anthropic_api_key, is_valid_anthropic_key),
    ]
    valid = 0
    for env_name, key, validator in checks:
        click.echo(f"{env_name}: {key_status(key, validator)}")
        valid += 1 if validator(key) else 0

    if valid:
        click.echo(f"\n{valid} valid API key(s) configured")
        click.echo("Extraction order: Gemini -> OpenAI -> Claude -> pattern/OCR fallback")
    else:
        click.echo("\nNo model API keys configured; extraction will use pattern matching and OCR only")


@main.command()
@click.pass_obj
def models(settings: Settings):
    """List configured model backends in priority order."""
    extractor = FieldExtractor.from_settings(settings)
    available = extractor.available_models()
    if not available:
        click.echo("No model backends configured")
        return
    for model in available:
        click.echo(f"{model['priority']}. {model['provider']} ({model['model']})")


if __name__ == '__main__':
    main()
