#!/usr/bin/env python3
"""
Build orchestrator for the equipment workflow service
Creates tables and optionally inserts the debug data set
"""

from equiptrack import db
from equiptrack.utils.logger import get_logger

logger = get_logger("equiptrack.build")


def build_models():
    """Create all tables registered with SQLAlchemy"""
    logger.info("Creating database tables...")
    db.create_all()
    logger.info(f"Tables ready: {', '.join(sorted(db.metadata.tables))}")


def build_database(app, enable_debug_data=False):
    """
    Build the database for ``app``.

    Args:
        app: Flask application created by create_app()
        enable_debug_data (bool): Insert the debug data set after creating tables

    Returns:
        dict: Debug data insertion summary (empty when disabled)
    """
    with app.app_context():
        logger.info(f"Starting database build (debug data: {enable_debug_data})")
        build_models()

        summary = {}
        if enable_debug_data:
            from equiptrack.debug.debug_data_manager import insert_debug_data
            summary = insert_debug_data()
            # Resolver snapshots taken before seeding are stale
            app.extensions['equiptrack'].corpus_cache.invalidate()

        logger.info("Database build completed")
        return summary
