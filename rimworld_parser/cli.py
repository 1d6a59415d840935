"""CLI for rimworld-parser."""

import argparse
import logging
import os
import sys
import time
from dataclasses import replace

from rimworld_parser.domain.constants import KEY_REFERENCE_FIELDS, REFERENCE_FIELD_PATTERNS
from rimworld_parser.domain.errors import DefinitionPipelineError
from rimworld_parser.domain.models import DefinitionConfig, DumpOptions, DumpResult
from rimworld_parser.output.dataset_builder import DatasetBuilder
from rimworld_parser.output.dataset_writer import DatasetWriter
from rimworld_parser.package_reader import PackageReader, PackageReadError
from rimworld_parser.pipeline import DefinitionPipeline

logger = logging.getLogger(__name__)


def dump_dataset(path: str, output_dir: str, options: DumpOptions) -> DumpResult:
    """Main orchestration: def files -> resolved graph -> dataset output.

    Diagnostics are written even when the pipeline aborts; the error is
    re-raised afterwards.
    """
    start_time = time.time()

    reader = PackageReader()
    contents = reader.read(path)
    writer = DatasetWriter(
        output_dir,
        pretty=options.pretty,
        compress=options.compress,
        compression_level=options.compression_level,
    )

    try:
        try:
            result = DefinitionPipeline(options.config).run(contents.files)
        except DefinitionPipelineError as e:
            writer.write_diagnostics(e.diagnostics)
            raise

        builder = DatasetBuilder(include_raw_xml=options.include_raw_xml)
        dataset = builder.build(result.graph, result.diagnostics, {
            'total_files': len(contents.files),
            'total_files_in_package': contents.total_files,
            'package_name': contents.package_name,
            'game_version': contents.game_version,
        })

        output_path = writer.write_dataset(dataset)
        writer.write_diagnostics(result.diagnostics)
        logger.info("Dump finished in %.2fs", time.time() - start_time)

        return DumpResult(
            total_files=len(contents.files),
            definitions=len(result.graph),
            excluded=len(result.excluded),
            edges=result.edge_count,
            diagnostics_count=len(result.diagnostics),
            output_path=output_path,
        )
    finally:
        reader.cleanup(contents.temp_dir)


def _build_config(args: argparse.Namespace) -> DefinitionConfig:
    config = DefinitionConfig(
        match_all_fields=args.match_all_fields,
        allow_abstract_name_pairs=args.allow_abstract_pairs,
        workers=args.workers,
    )
    if args.reference_field:
        config = replace(config, reference_field_patterns=config.reference_field_patterns + tuple(args.reference_field))
    return config


def main():
    parser = argparse.ArgumentParser(prog='rimworld-parser', description='RimWorld definition parser')
    parser.add_argument('--log-level', default='WARNING', help='Logging level (default: WARNING)')
    subparsers = parser.add_subparsers(dest='command')

    # dump command
    dump_parser = subparsers.add_parser('dump', help='Resolve definitions and dump the dataset')
    dump_parser.add_argument('path', help='RimWorld install, def folder, or ZIP file')
    dump_parser.add_argument('output', help='Output directory')
    dump_parser.add_argument('--pretty', action='store_true', help='Pretty-print JSON')
    dump_parser.add_argument('--no-compress', action='store_true', help='Write dataset.json instead of dataset.json.zstd')
    dump_parser.add_argument('--no-raw-xml', action='store_true', help='Omit raw XML from entries')
    dump_parser.add_argument('--workers', type=int, default=4, help='Parse and link workers (default: 4)')
    dump_parser.add_argument('--reference-field', action='append', help='Extra reference field pattern (repeatable)')
    dump_parser.add_argument('--match-all-fields', action='store_true', help='Treat every field as a reference candidate')
    dump_parser.add_argument('--allow-abstract-pairs', action='store_true', help='Let abstract definitions share a name')

    # fields command
    subparsers.add_parser('fields', help='List reference field patterns')

    args = parser.parse_args()
    logging.basicConfig(level=args.log_level.upper(), format='%(levelname)s %(name)s: %(message)s')

    if args.command == 'dump':
        if not os.path.exists(args.path):
            print(f"Error: {args.path} not found", file=sys.stderr)
            sys.exit(2)

        options = DumpOptions(
            pretty=args.pretty,
            compress=not args.no_compress,
            include_raw_xml=not args.no_raw_xml,
            config=_build_config(args),
        )

        print(f"Parsing {args.path}...")
        try:
            result = dump_dataset(args.path, args.output, options)
        except DefinitionPipelineError as e:
            print(f"Error: {e}", file=sys.stderr)
            for diagnostic in e.diagnostics:
                print(f"  [{diagnostic.severity.value}] {diagnostic.kind.value}: {diagnostic.message}", file=sys.stderr)
            sys.exit(1)
        except PackageReadError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)

        print(f"Done! Resolved {result.definitions} definitions from {result.total_files} files "
              f"({result.excluded} excluded, {result.edges} references, {result.diagnostics_count} diagnostics)")
        print(f"Output: {result.output_path}")

    elif args.command == 'fields':
        print("Reference fields:")
        for pattern in REFERENCE_FIELD_PATTERNS:
            print(f"  {pattern}")
        print("Keyed reference fields:")
        for name in KEY_REFERENCE_FIELDS:
            print(f"  {name}")

    else:
        parser.print_help()


if __name__ == '__main__':
    main()
