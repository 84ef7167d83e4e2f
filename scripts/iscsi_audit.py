#!/usr/bin/env python3
"""
iscsi_audit.py - Audit iSCSI targets and extents on TrueNAS

Reports targets without extents, extents without targets, extents whose
zvol is gone and targets without active sessions. With --cleanup, targets
that have neither an extent nor a backing dataset are deleted (dry run
unless --no-dry-run is given).
"""

import sys
import json
import logging
import argparse
from pathlib import Path
from typing import Any, Dict, Optional

# Add project root to path for imports
sys.path.append(str(Path(__file__).parent.parent))

from iscsiaudit.client import TrueNASClient
from iscsiaudit.components import ISCSIAuditComponent, S3ArtifactStore
from iscsiaudit.config import AuditConfig, load_config
from iscsiaudit.errors import AuditError
from iscsiaudit.report import render_audit_report, render_cleanup_summary, render_raw_sessions


def setup_logging(verbose: bool = False) -> logging.Logger:
    """
    Set up logging configuration.

    Args:
        verbose: Whether to use DEBUG level logging

    Returns:
        Configured logger instance
    """
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler()
        ]
    )
    return logging.getLogger("iscsi-audit")


def parse_arguments(argv: Optional[list] = None) -> argparse.Namespace:
    """
    Parse command line arguments.

    Returns:
        Parsed arguments as Namespace
    """
    parser = argparse.ArgumentParser(
        description="Audit iSCSI targets, extents and sessions on TrueNAS"
    )

    # TrueNAS connection
    parser.add_argument(
        "--host",
        help="TrueNAS hostname or IP, may include port (env: TRUENAS_HOST)"
    )
    parser.add_argument(
        "--port",
        type=int,
        help="TrueNAS API port (env: TRUENAS_PORT)"
    )
    parser.add_argument(
        "--api-key",
        help="TrueNAS API key (env: TRUENAS_API_KEY)"
    )
    parser.add_argument(
        "--use-http",
        action="store_true",
        help="Use HTTP instead of HTTPS"
    )
    parser.add_argument(
        "--ssl-verify",
        action="store_true",
        help="Verify SSL certificate"
    )

    # Audit configuration
    parser.add_argument(
        "--parent-dataset",
        help="Parent dataset of the per-target datasets (env: TRUENAS_PARENT_DATASET)"
    )
    parser.add_argument(
        "--config",
        help="YAML configuration file"
    )
    parser.add_argument(
        "--env-file",
        help="Path to .env file"
    )

    # Actions
    parser.add_argument(
        "--cleanup",
        action="store_true",
        help="Clean up orphaned targets without datasets"
    )
    parser.add_argument(
        "--no-dry-run",
        dest="dry_run",
        action="store_false",
        help="Actually delete targets during cleanup (default is a dry run)"
    )
    parser.add_argument(
        "--debug-sessions",
        action="store_true",
        help="Dump raw session data and exit"
    )

    # Output
    parser.add_argument(
        "--output",
        help="Write audit results to a JSON file"
    )
    parser.add_argument(
        "--artifact-bucket",
        help="Upload audit results to this S3 bucket (env: AUDIT_ARTIFACT_BUCKET)"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    parser.set_defaults(dry_run=None)
    return parser.parse_args(argv)


def create_audit_config(args: argparse.Namespace) -> AuditConfig:
    """
    Create the audit configuration from command line arguments.

    Flags that were not given fall back to the environment, the config file
    and the defaults, in that order.
    """
    overrides: Dict[str, Any] = {
        'truenas_host': args.host,
        'truenas_port': args.port,
        'api_key': args.api_key,
        'parent_dataset': args.parent_dataset,
        'artifact_bucket': args.artifact_bucket,
        'cleanup': args.cleanup or None,
        'dry_run': args.dry_run,
        'log_level': 'DEBUG' if args.verbose else None,
    }
    if args.use_http:
        overrides['use_https'] = False
    if args.ssl_verify:
        overrides['ssl_verify'] = True

    return load_config(config_file=args.config, env_file=args.env_file, overrides=overrides)


def create_client(config: AuditConfig, logger: logging.Logger) -> TrueNASClient:
    """Build the TrueNAS client from the configuration"""
    return TrueNASClient(
        host=config['truenas_host'],
        api_key=config['api_key'],
        port=config.get('truenas_port'),
        use_https=config.get('use_https', True),
        ssl_verify=config.get('ssl_verify', False),
        timeout=config['timeout'],
        logger=logger,
    )


def write_output(path: str, component: ISCSIAuditComponent) -> None:
    """Write the audit (and cleanup) results to a JSON file"""
    data: Dict[str, Any] = {'audit': component.result.to_dict() if component.result else None}
    if component.cleanup_summary is not None:
        data['cleanup'] = component.cleanup_summary.to_dict()
    data['execution'] = component.get_execution_summary()

    with open(path, 'w') as f:
        json.dump(data, f, indent=2, default=str)


def run(args: argparse.Namespace, logger: logging.Logger) -> int:
    """Run the audit for parsed arguments and return the exit code"""
    try:
        config = create_audit_config(args)
    except AuditError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    if not config.get('api_key'):
        logger.error("TRUENAS_API_KEY not set (use --api-key or the environment)")
        return 1

    client = create_client(config, logger)

    if args.debug_sessions:
        try:
            # A null response is an empty session list
            print(render_raw_sessions(client.list_sessions() or []))
        except AuditError as e:
            logger.error(f"Error fetching sessions: {e}")
            return 1
        return 0

    print("=== TrueNAS iSCSI Audit Tool ===")
    print(f"Parent dataset: {config['parent_dataset']}")
    print()

    component = ISCSIAuditComponent(
        config,
        api=client,
        artifact_store=S3ArtifactStore.from_config(config, logger),
    )

    try:
        component.discover()
        component.process()
    except AuditError as e:
        logger.error(f"Audit failed: {e}")
        return 1

    print(render_audit_report(component.result))

    try:
        component.housekeep()
    except Exception as e:
        logger.error(f"Housekeeping failed: {e}")
        return 1

    if component.cleanup_summary is not None:
        print()
        print(render_cleanup_summary(component.cleanup_summary))
        if component.cleanup_summary.dry_run:
            print("Run with --no-dry-run to actually delete")

    if args.output:
        write_output(args.output, component)
        logger.info(f"Audit results written to {args.output}")

    return 0


def main() -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, 1 for a fatal error, 130 when interrupted)
    """
    args = parse_arguments()
    logger = setup_logging(args.verbose)

    try:
        return run(args, logger)
    except KeyboardInterrupt:
        print("\nOperation cancelled by user", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
