#!/usr/bin/env python3
"""
Run script for the equipment workflow service
"""

import argparse
import os
import sys

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from equiptrack import create_app
from equiptrack.build import build_database
from equiptrack.buisness.command_pipeline import get_pipeline
from equiptrack.utils.logger import get_logger

# Run 'python generate_env.py' to create a .env file with a secure SECRET_KEY.

app = create_app()
logger = get_logger("equiptrack.run")


def parse_arguments():
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(description='Equipment workflow service')
    parser.add_argument('--build-only', action='store_true',
                        help='Build database tables only, then exit without starting the web server')
    parser.add_argument('--enable-debug-data', action='store_true', default=True,
                        help='Enable debug data insertion (default: enabled if flag not present)')
    parser.add_argument('--no-debug-data', action='store_false', dest='enable_debug_data',
                        help='Disable debug data insertion')
    parser.add_argument('--sweep', action='store_true',
                        help='Run the automatic transition sweep for every active tenant, then exit')
    return parser.parse_args()


def run_sweep():
    """Single sweep pass, meant to be triggered by cron or a scheduler"""
    with app.app_context():
        results = get_pipeline().sweeper.sweep_all()

    failed = 0
    for tenant_id, result in results.items():
        logger.info(f"Tenant {tenant_id}: {result.to_dict()}")
        if not result.success:
            failed += 1
    logger.info(f"Sweep finished for {len(results)} tenants ({failed} with failures)")
    return failed == 0


if __name__ == '__main__':
    args = parse_arguments()

    if args.sweep:
        sys.exit(0 if run_sweep() else 1)

    logger.debug("Starting equipment workflow service...")

    build_database(app, enable_debug_data=args.enable_debug_data and not args.build_only)

    if args.build_only:
        logger.debug("Build completed. Exiting without starting web server.")
        sys.exit(0)

    # FLASK_DEBUG: Enable/disable debug mode (default: False for security)
    debug_mode = os.environ.get('FLASK_DEBUG', 'False').lower() in ('true', '1', 'yes', 'on')

    # USE_RELOADER: Enable/disable auto-reloader (default: False in production)
    use_reloader = os.environ.get('USE_RELOADER', 'False').lower() in ('true', '1', 'yes', 'on')

    # FLASK_HOST: Server host (default: 127.0.0.1 for security)
    host = os.environ.get('FLASK_HOST', '127.0.0.1')

    # FLASK_PORT: Server port (default: 5000)
    port = int(os.environ.get('FLASK_PORT', '5000'))

    if debug_mode:
        logger.warning("DEBUG MODE ENABLED - Do not use in production!")

    logger.info(f"Starting server on {host}:{port} (debug={debug_mode}, reloader={use_reloader})")
    app.run(debug=debug_mode, host=host, port=port, use_reloader=use_reloader)
