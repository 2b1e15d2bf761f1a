#!/usr/bin/env python3
"""
Debug Data Manager
Central controller for debug data insertion

Handles:
- Loading the debug data JSON file
- Checking if data is already present
- Inserting tenants, users, locations, categories and equipment in dependency order
- Fail-fast error handling
"""

from datetime import timedelta
from pathlib import Path
import json

from equiptrack import db
from equiptrack.utils.clock import utcnow
from equiptrack.utils.logger import get_logger

logger = get_logger("equiptrack.debug_data_manager")

DEBUG_DATA_FILE = Path(__file__).parent / 'data' / 'seed.json'


def insert_debug_data(data_file=DEBUG_DATA_FILE):
    """
    Insert the debug data set.

    Args:
        data_file (Path): JSON file to load

    Returns:
        dict: Summary of inserted rows per section

    Raises:
        Exception: If any insertion fails (fail-fast)
    """
    debug_data = _load_debug_data_file(data_file)
    if not debug_data:
        logger.info(f"No debug data file found at {data_file}, skipping")
        return {'status': 'skipped', 'reason': 'file_not_found'}

    if _check_debug_data_present(debug_data):
        logger.info("Debug data already present, skipping")
        return {'status': 'skipped', 'reason': 'data_present'}

    try:
        summary = {
            'tenants': _insert_tenants(debug_data.get('tenants', [])),
            'users': _insert_users(debug_data.get('users', [])),
            'locations': _insert_locations(debug_data.get('locations', [])),
            'categories': _insert_categories(debug_data.get('categories', [])),
            'equipment': _insert_equipment(debug_data.get('equipment', [])),
        }
        db.session.commit()
    except Exception as e:
        logger.error(f"Failed to insert debug data: {e}")
        db.session.rollback()
        raise

    logger.info(f"Debug data insertion completed: {summary}")
    return summary


def _load_debug_data_file(data_file):
    data_file = Path(data_file)
    if not data_file.exists():
        return None

    try:
        with open(data_file, 'r') as f:
            data = json.load(f)
        logger.debug(f"Loaded debug data file: {data_file}")
        return data
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in {data_file}: {e}")
        raise


def _check_debug_data_present(debug_data):
    """Debug data carries explicit tenant ids; the first one marks the set as present."""
    from equiptrack.data.core.tenant import Tenant

    tenants = debug_data.get('tenants', [])
    if not tenants:
        return False
    return db.session.get(Tenant, tenants[0]['id']) is not None


def _insert_tenants(rows):
    from equiptrack.data.core.tenant import Tenant
    for row in rows:
        db.session.add(Tenant(**row))
    db.session.flush()
    return len(rows)


def _insert_users(rows):
    from equiptrack.data.core.user import User
    for row in rows:
        db.session.add(User(**row))
    db.session.flush()
    return len(rows)


def _insert_locations(rows):
    from equiptrack.data.core.location import Location
    for row in rows:
        db.session.add(Location(**row))
    db.session.flush()
    return len(rows)


def _insert_categories(rows):
    from equiptrack.data.core.location import Category
    for row in rows:
        db.session.add(Category(**row))
    db.session.flush()
    return len(rows)


def _insert_equipment(rows):
    """Equipment rows may give ``last_maintenance_days_ago`` instead of a timestamp."""
    from equiptrack.data.equipment.equipment import Equipment
    now = utcnow()
    for row in rows:
        row = dict(row)
        days_ago = row.pop('last_maintenance_days_ago', None)
        if days_ago is not None:
            row['last_maintenance_date'] = now - timedelta(days=days_ago)
        db.session.add(Equipment(**row))
    db.session.flush()
    return len(rows)
