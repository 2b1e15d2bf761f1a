"""
Command routes
Natural-language equipment commands: process, interpret, batch, and the admin
catalogue, statistics and cache endpoints.
"""

from flask import Blueprint, current_app, jsonify
from flask_login import login_required, current_user

from equiptrack import limiter
from equiptrack.buisness.command_pipeline import get_pipeline
from equiptrack.buisness.commands.executor import HELP_COMMANDS, HELP_SUGGESTIONS
from equiptrack.buisness.commands.intents import STATUS_SYNONYMS
from equiptrack.buisness.commands.patterns import describe_patterns
from equiptrack.data.core.user import UserRole
from equiptrack.presentation.routes.responses import api_response, json_body, roles_required, status_for_error
from equiptrack.services.voice_stats_service import VoiceStatsService
from equiptrack.utils.clock import utcnow
from equiptrack.utils.logger import get_logger

bp = Blueprint('commands', __name__)
logger = get_logger("equiptrack.routes.commands")

MAX_COMMAND_LENGTH = 500
MAX_BATCH_SIZE = 10


def _command_rate_limit():
    return current_app.config.get('COMMAND_RATE_LIMIT', '30 per minute')


def _validate_command(value):
    """Return an error message for an invalid command, or None."""
    if not isinstance(value, str) or not value.strip():
        return "Command is required"
    if len(value) > MAX_COMMAND_LENGTH:
        return "Command too long"
    return None


@bp.route('/process', methods=['POST'])
@login_required
@limiter.limit(_command_rate_limit)
def process_command():
    """Interpret and execute one command"""
    payload = json_body()
    command = payload.get('command')
    problem = _validate_command(command)
    if problem:
        return api_response(False, problem, error='VALIDATION_ERROR', status=400)

    logger.info(f"Processing command for user {current_user.id}")
    result = get_pipeline().executor.process(command, current_user.id, current_user.tenant_id)

    body = result.to_dict()
    body['command'] = command
    body['processed_at'] = utcnow().isoformat()
    return jsonify(body), status_for_error(result.error)


@bp.route('/interpret', methods=['POST'])
@login_required
@limiter.limit(_command_rate_limit)
def interpret_command():
    """Classify a command without executing it"""
    payload = json_body()
    command = payload.get('command')
    problem = _validate_command(command)
    if problem:
        return api_response(False, problem, error='VALIDATION_ERROR', status=400)

    intent = get_pipeline().interpreter.interpret(command, current_user.tenant_id)
    return api_response(True, f"Interpreted as {intent.kind.value}", data=intent.to_dict())


@bp.route('/batch', methods=['POST'])
@login_required
@roles_required(UserRole.ADMIN, UserRole.MANAGER, UserRole.STAFF)
@limiter.limit(_command_rate_limit)
def process_batch():
    """Process up to ten commands in order"""
    payload = json_body()
    commands = payload.get('commands')
    if not isinstance(commands, list) or not commands:
        return api_response(False, "At least one command is required", error='VALIDATION_ERROR', status=400)
    if len(commands) > MAX_BATCH_SIZE:
        return api_response(False, f"Maximum {MAX_BATCH_SIZE} commands at once", error='VALIDATION_ERROR',
                            status=400)
    for command in commands:
        problem = _validate_command(command)
        if problem:
            return api_response(False, problem, error='VALIDATION_ERROR', status=400)

    executor = get_pipeline().executor
    results = []
    for command in commands:
        result = executor.process(command, current_user.id, current_user.tenant_id)
        entry = result.to_dict()
        entry['command'] = command
        entry['processed_at'] = utcnow().isoformat()
        results.append(entry)

    success_count = sum(1 for r in results if r['success'])
    failure_count = len(results) - success_count
    return api_response(
        True,
        f"Batch processing completed: {success_count} successful, {failure_count} failed",
        data={
            'total_processed': len(results),
            'success_count': success_count,
            'failure_count': failure_count,
            'results': results,
        },
    )


@bp.route('/help', methods=['GET'])
@login_required
def command_help():
    """Supported phrasings"""
    return api_response(
        True,
        "I can help you manage equipment with voice commands. Here's what I can do:",
        data={'commands': list(HELP_COMMANDS)},
        suggestions=HELP_SUGGESTIONS,
    )


@bp.route('/intents', methods=['GET'])
@login_required
@roles_required(UserRole.ADMIN, UserRole.MANAGER)
def list_intents():
    """Pattern catalogue and status synonyms"""
    return api_response(
        True,
        "Supported intents",
        data={'intents': describe_patterns(), 'status_synonyms': dict(STATUS_SYNONYMS)},
    )


@bp.route('/stats', methods=['GET'])
@login_required
@roles_required(UserRole.ADMIN, UserRole.MANAGER)
def command_stats():
    """Voice command statistics for the last 30 days"""
    stats = VoiceStatsService.get_stats(current_user.tenant_id, now=get_pipeline().clock())
    return api_response(True, "Voice command statistics", data=stats)


@bp.route('/cache', methods=['DELETE'])
@login_required
@roles_required(UserRole.ADMIN)
def clear_cache():
    """Drop the equipment corpus snapshot for the caller's tenant"""
    cache = get_pipeline().corpus_cache
    cache.invalidate(current_user.tenant_id)
    logger.info(f"Equipment corpus cache cleared by user {current_user.id}")
    return api_response(True, "Equipment cache cleared", data=cache.stats())
