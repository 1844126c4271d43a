#!/usr/bin/env python3
"""CLI entry point for image-import-driver.

Resolves import settings, loads and annotates the import workflow, and
writes the result for the submission layer:

    image-import --image-name my-image --client-id api \\
        --source-file gs://bucket/disk.vmdk --os ubuntu-1604 \\
        --zone us-central1-c --no-external-ip --output plan.json
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from config import get_workflow_dir, load_defaults, resolve_build_id
from errors import ImageImportError
from flags import FlagSet, add_flag_arguments
from importer import prepare_import
from metadata import GCEMetadata

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S',
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog='image-import',
        description='Prepare an image import workflow for submission',
    )
    add_flag_arguments(parser)
    parser.add_argument('--config', type=Path,
                        help='YAML file with flag defaults (default: $IMAGE_IMPORT_CONFIG)')
    parser.add_argument('--workflow-dir', dest='workflow_dir', type=Path,
                        help='image_import workflow directory (default: auto-discovered)')
    parser.add_argument('--build-id', dest='build_id',
                        help='Build id for resource labels (default: $BUILD_ID or random)')
    parser.add_argument('--output', '-o', type=Path,
                        help='Write the plan to this file instead of stdout')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable debug logging')
    return parser


def main(argv=None) -> int:
    """CLI entry point.

    Returns:
        Exit code (0=success, 1=error)
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        defaults = load_defaults(args.config)
        flags = FlagSet.from_args(args, defaults)
        workflow_dir = args.workflow_dir or get_workflow_dir()
        build_id = args.build_id or resolve_build_id()
        plan = prepare_import(flags, GCEMetadata(), workflow_dir, build_id)
    except ImageImportError as e:
        logger.error(f"Error: {e.message}")
        return 1

    document = json.dumps(plan.to_dict(), indent=2, sort_keys=True)
    if args.output:
        args.output.write_text(document + '\n', encoding='utf-8')
        logger.info(f"Wrote import plan to {args.output}")
    else:
        print(document)
    return 0


if __name__ == '__main__':
    sys.exit(main())
