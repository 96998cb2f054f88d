"""Command-line interface for retrodisc."""

import sys
import logging
import argparse
import asyncio
from pathlib import Path
from typing import Optional, Tuple

from rich.console import Console
from rich.markup import escape
from rich.table import Table

logger = logging.getLogger(__name__)

from retrodisc import __version__
from retrodisc.config.loader import load_config, get_config_value, ConfigError
from retrodisc.config.validator import validate_config, ValidationError
from retrodisc.cue.binmerge import merge_cue_file, split_cue_file
from retrodisc.cue.convert import convert_ccd_file, process_directory
from retrodisc.dat.loader import load_dat_from_path, DatParsingError
from retrodisc.dat.matcher import MatchVerdict
from retrodisc.dat.metadata import METADATA_FILENAME, verdict_to_metadata, write_metadata
from retrodisc.dat.verifier import accept_verification, identify_folder, verify_dump_folder
from retrodisc.workflow.batch import BatchSummary, run_batch
from retrodisc.workflow.rename import rename_dump

STATUS_STYLES = {
    'match': 'green',
    'ok': 'green',
    'partial': 'yellow',
    'none': 'red',
    'failed': 'bold red',
    'planned': 'cyan',
    'skipped': 'dim',
}


def create_parser() -> argparse.ArgumentParser:
    """Create and configure argument parser."""
    parser = argparse.ArgumentParser(
        prog='retrodisc',
        description='CUE/BIN track geometry and DAT verification for optical disc dumps',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Merge a multi-track dump into one bin/cue
  retrodisc merge "Game.cue" -o merged/

  # Split a merged dump back into Redump-style tracks
  retrodisc split "Game.cue" -o tracks/ --basename "Game (USA)"

  # Generate missing cue sheets (from .ccd or lone .bin files)
  retrodisc mkcue dumps/

  # Identify extracted dump folders against a DAT
  retrodisc identify --dat "Sony - PlayStation.dat" extracted/*/

  # Strictly verify dump folders
  retrodisc verify --dat redump.zip --cuesheets cues/ extracted/*/

  # Rename identified folders after their matched game
  retrodisc rename --dry-run extracted/*/
        """
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    parser.add_argument(
        '--config',
        type=Path,
        metavar='PATH',
        help='Path to config.yaml (default: ./config.yaml if present)'
    )

    subparsers = parser.add_subparsers(dest='command', metavar='COMMAND')
    subparsers.required = True

    for name, help_text in (('merge', 'Merge the bins of a cue sheet into one bin'),
                            ('split', 'Split a single-bin cue sheet into per-track bins')):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument('cue_files', nargs='+', type=Path, metavar='CUE')
        sub.add_argument(
            '-o', '--outdir',
            type=Path,
            metavar='DIR',
            help='Output directory (default: paths.output, else next to the cue)'
        )
        sub.add_argument(
            '--basename',
            metavar='NAME',
            help='Output name without extension (default: cue filename)'
        )

    mkcue = subparsers.add_parser('mkcue', help='Create cue sheets from .ccd files or lone .bin files')
    mkcue.add_argument('paths', nargs='+', type=Path, metavar='PATH',
                       help='.ccd files or directories to process')

    rename = subparsers.add_parser('rename', help='Rename identified dump folders after their matched game')
    rename.add_argument('folders', nargs='+', type=Path, metavar='FOLDER')
    rename.add_argument('--dry-run', action='store_true',
                        help='Show what would be renamed without renaming')

    for name, help_text in (('identify', 'Identify extracted dump folders against a DAT'),
                            ('verify', 'Strictly verify extracted dump folders against a DAT')):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument('folders', nargs='+', type=Path, metavar='FOLDER')
        sub.add_argument('--dat', type=Path, metavar='PATH',
                         help='DAT file (.dat or .zip). Overrides config.')
        if name == 'identify':
            sub.add_argument('--threshold', type=int, metavar='BYTES',
                             help='Closest-size match threshold in bytes. Overrides config.')
            sub.add_argument('--write-metadata', action='store_true',
                             help=f'Write {METADATA_FILENAME} into each identified folder')
        else:
            sub.add_argument('--cuesheets', type=Path, metavar='DIR',
                             help='Directory of reference .cue files. Overrides config.')
            sub.add_argument('--allow-cue-mismatches', action='store_true',
                             help='Accept dumps whose .cue differs from the DAT')

    return parser


def _setup_logging(config: dict) -> None:
    """
    Setup logging configuration from config.

    Args:
        config: Configuration dictionary
    """
    logging_config = config.get('logging', {})

    # Get log level
    level_str = str(logging_config.get('level', 'INFO')).upper()
    level = getattr(logging, level_str, logging.INFO)

    handlers = []

    if logging_config.get('console', True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        formatter = logging.Formatter('%(levelname)s: %(message)s')
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    # File handler (if configured)
    log_file = logging_config.get('file')
    if log_file:
        try:
            log_path = Path(log_file)
            # Create parent directory if it doesn't exist
            log_path.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(level)
            formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
            file_handler.setFormatter(formatter)
            handlers.append(file_handler)
        except (OSError, PermissionError) as e:
            print(f"Error: Could not create log file '{log_file}': {e}", file=sys.stderr)
            sys.exit(1)

    # Configure root logger
    logging.basicConfig(
        level=level,
        handlers=handlers,
        force=True  # Override any existing configuration
    )


def _resolve_outdir(args: argparse.Namespace, config: dict, cue_path: Path) -> Path:
    if args.outdir:
        return args.outdir
    configured = get_config_value(config, 'paths.output')
    if configured:
        return Path(configured).expanduser()
    return cue_path.parent


def _print_summary(title: str, summary: BatchSummary, console: Optional[Console] = None) -> None:
    """Print a results table and verdict counts."""
    console = console or Console()

    table = Table(title=title)
    table.add_column("Input", overflow="fold")
    table.add_column("Status")
    table.add_column("Detail", overflow="fold")

    for result in summary.results:
        style = STATUS_STYLES.get(result.status, '')
        status = f"[{style}]{result.status}[/{style}]" if style else escape(result.status)
        table.add_row(escape(result.name), status, escape(result.detail))

    console.print(table)
    counts = summary.counts()
    console.print(", ".join(f"{status}: {count}" for status, count in sorted(counts.items())))


def _load_dat(args: argparse.Namespace, config: dict):
    dat_path = args.dat or get_config_value(config, 'paths.dat')
    if not dat_path:
        raise DatParsingError("No DAT file given (use --dat or paths.dat in config)")
    dat = load_dat_from_path(Path(dat_path).expanduser())
    logger.info(f"Loaded DAT {dat.system!r} with {len(dat)} games")
    return dat


def _verdict_detail(verdict: MatchVerdict) -> str:
    if verdict.game is None:
        return verdict.reason
    return f"{verdict.game.name} ({verdict.reason})"


def run_merge_or_split(args: argparse.Namespace, config: dict) -> BatchSummary:
    """Merge or split every given cue file."""
    operation = merge_cue_file if args.command == 'merge' else split_cue_file
    blocksize = get_config_value(config, 'cue.blocksize', 2352)

    def worker(cue_path: Path) -> Tuple[str, str]:
        basename = args.basename or cue_path.stem
        outdir = _resolve_outdir(args, config, cue_path)
        new_cue = operation(cue_path, basename, outdir, blocksize=blocksize)
        return 'ok', str(new_cue)

    return run_batch(args.cue_files, worker, describe=lambda p: p.name)


def run_mkcue(args: argparse.Namespace) -> BatchSummary:
    """Create cue sheets for .ccd files and directories."""
    def worker(path: Path) -> Tuple[str, str]:
        if path.is_dir():
            generated = process_directory(path)
            return 'ok', f"{len(generated)} cue sheets generated"
        return 'ok', str(convert_ccd_file(path))

    return run_batch(args.paths, worker, describe=lambda p: p.name)


def run_rename(args: argparse.Namespace) -> BatchSummary:
    """Rename identified folders using their metadata files."""
    def worker(folder: Path) -> Tuple[str, str]:
        return rename_dump(folder, dry_run=args.dry_run)

    return run_batch(args.folders, worker, describe=lambda p: p.name)


def run_identify(args: argparse.Namespace, config: dict, dat) -> BatchSummary:
    """Identify every folder against the DAT."""
    threshold = args.threshold
    if threshold is None:
        threshold = get_config_value(config, 'matching.closest_size_threshold', 1000)

    def worker(folder: Path) -> Tuple[str, str]:
        verdict = asyncio.run(identify_folder(folder, dat, closest_size_threshold=threshold))
        if args.write_metadata:
            write_metadata(verdict_to_metadata(verdict), folder / METADATA_FILENAME)
        return verdict.status.value, _verdict_detail(verdict)

    return run_batch(args.folders, worker, describe=lambda p: p.name)


def run_verify(args: argparse.Namespace, config: dict, dat) -> BatchSummary:
    """Strictly verify every folder against the DAT."""
    cuesheets_dir = args.cuesheets or get_config_value(config, 'paths.cuesheets')
    reference_cues = sorted(Path(cuesheets_dir).expanduser().glob('*.cue')) if cuesheets_dir else []
    allow_mismatches = args.allow_cue_mismatches or bool(
        get_config_value(config, 'matching.allow_cue_mismatches', False)
    )

    def worker(folder: Path) -> Tuple[str, str]:
        result = asyncio.run(verify_dump_folder(folder, dat, reference_cues))
        game = accept_verification(result, allow_cue_mismatches=allow_mismatches)
        return 'match', f"{game.name} ({result.cue_result.value})"

    return run_batch(args.folders, worker, describe=lambda p: p.name)


def main(argv: Optional[list] = None) -> int:
    """
    Main entry point for retrodisc CLI.

    Args:
        argv: Command-line arguments (default: sys.argv)

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    # Load and validate configuration
    try:
        config = load_config(args.config, required=args.config is not None)
        validate_config(config)
    except (ConfigError, ValidationError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    _setup_logging(config)

    try:
        if args.command in ('merge', 'split'):
            summary = run_merge_or_split(args, config)
        elif args.command == 'mkcue':
            summary = run_mkcue(args)
        elif args.command == 'rename':
            summary = run_rename(args)
        else:
            try:
                dat = _load_dat(args, config)
            except (DatParsingError, OSError) as e:
                print(f"Error loading DAT: {e}", file=sys.stderr)
                return 1
            if args.command == 'identify':
                summary = run_identify(args, config, dat)
            else:
                summary = run_verify(args, config, dat)
    except KeyboardInterrupt:
        print("\n\nInterrupted by user.", file=sys.stderr)
        return 130

    _print_summary(f"retrodisc {args.command}", summary)
    return 1 if summary.has_failures() else 0


if __name__ == '__main__':
    sys.exit(main())
