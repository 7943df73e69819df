#!/usr/bin/env python3
"""
CIL Metadata Dumper

Command-line interface for dumping the metadata tables of .NET images into
TOML fixture files.

Usage:
    cil-metadata-dumper <assembly>... [-o <output-directory>]
    cil-metadata-dumper -h | --help
    cil-metadata-dumper --version

Arguments:
    assembly           Path to a managed DLL or EXE

Options:
    -o --output        Output directory for TOML files (default: current directory)
    --config           Path to config.json
    --resolve-strings  Emit names as text instead of #Strings offsets
    --assembly-refs    Also dump the AssemblyRef table
    -h --help          Show this help message
    --version          Show version
"""

import sys
import argparse
import traceback
from pathlib import Path
from typing import List, Optional

from . import __version__
from .config import Config
from .errors import BadImageFormatError
from .writer import write_metadata


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="CIL Metadata Dumper - Dump .NET metadata tables to TOML fixtures",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument('assemblies', nargs='*', help='Managed DLL or EXE files')
    parser.add_argument('-o', '--output', type=str, default='.', help='Output directory')
    parser.add_argument('--version', action='version', version=f'cil_metadata_dumper {__version__}')
    parser.add_argument('--config', type=str, help='Path to config.json')
    parser.add_argument('--resolve-strings', action='store_true', default=None,
                        help='Emit names as text instead of #Strings offsets')
    parser.add_argument('--assembly-refs', action='store_true', default=None,
                        help='Also dump the AssemblyRef table')
    return parser


def load_config(args: argparse.Namespace) -> Config:
    """Load the config file and apply command-line overrides."""
    config_path = Path(args.config) if args.config else None
    config = Config.load(config_path)

    if args.resolve_strings is not None:
        config.resolve_strings = args.resolve_strings
    if args.assembly_refs is not None:
        config.dump_assembly_ref = args.assembly_refs

    return config


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.assemblies:
        parser.print_help()
        print("\nERROR: At least one assembly is required")
        return 1

    config = load_config(args)

    # Ensure output directory exists
    output_dir = Path(args.output)
    output_dir.mkdir(parents=True, exist_ok=True)

    for assembly in args.assemblies:
        print(f"Dumping {assembly}...")
        try:
            path = write_metadata(assembly, output_dir, config)
        except (BadImageFormatError, OSError) as e:
            print(f"ERROR: {e}")
            return 1
        except Exception as e:
            print(f"ERROR: {e}")
            traceback.print_exc()
            return 1
        print(f"Wrote {path}")

    print("Done!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
