"""
Workflow routes
Explicit status transitions, transition listing, history and the admin sweep trigger.
"""

from flask import Blueprint
from flask_login import login_required, current_user

from equiptrack.buisness.command_pipeline import get_pipeline
from equiptrack.buisness.workflow.errors import WorkflowDomainError
from equiptrack.data.core.user import UserRole
from equiptrack.presentation.routes.responses import api_response, json_body, roles_required, domain_error_response
from equiptrack.services.equipment_history_service import EquipmentHistoryService
from equiptrack.utils.logger import get_logger

bp = Blueprint('workflow', __name__)
logger = get_logger("equiptrack.routes.workflow")


@bp.route('/equipment/<int:equipment_id>/status', methods=['POST'])
@login_required
def change_status(equipment_id):
    """Apply a status transition on behalf of the current user"""
    payload = json_body()
    status = payload.get('status')
    if not isinstance(status, str) or not status.strip():
        return api_response(False, "Status is required", error='VALIDATION_ERROR', status=400)
    reason = payload.get('reason')
    metadata = payload.get('metadata') or {}
    if not isinstance(metadata, dict):
        return api_response(False, "Metadata must be an object", error='VALIDATION_ERROR', status=400)

    try:
        result = get_pipeline().workflow.attempt_transition(
            equipment_id,
            status,
            current_user.id,
            reason=reason,
            metadata=metadata,
            tenant_id=current_user.tenant_id,
        )
    except WorkflowDomainError as e:
        return domain_error_response(e)

    return api_response(True, result.message, data=result.to_dict())


@bp.route('/equipment/<int:equipment_id>/transitions', methods=['GET'])
@login_required
def allowed_transitions(equipment_id):
    """Current status and legal targets"""
    try:
        data = get_pipeline().workflow.allowed_transitions(equipment_id, tenant_id=current_user.tenant_id)
    except WorkflowDomainError as e:
        return domain_error_response(e)
    return api_response(True, f"Current status: {data['current_status']}", data=data)


@bp.route('/equipment/<int:equipment_id>/history', methods=['GET'])
@login_required
def status_history(equipment_id):
    """Status changes, newest first"""
    try:
        entries = get_pipeline().workflow.get_history(equipment_id, tenant_id=current_user.tenant_id)
    except WorkflowDomainError as e:
        return domain_error_response(e)
    history = EquipmentHistoryService.format_history(entries)
    return api_response(True, f"{len(history)} status changes", data={'equipment_id': equipment_id,
                                                                      'history': history})


@bp.route('/sweep', methods=['POST'])
@login_required
@roles_required(UserRole.ADMIN)
def run_sweep():
    """Run the automatic transition sweep for the caller's tenant"""
    logger.info(f"Manual sweep triggered by user {current_user.id} for tenant {current_user.tenant_id}")
    result = get_pipeline().sweeper.sweep(current_user.tenant_id)
    return api_response(
        True,
        f"Sweep completed: {result.overdue_count} overdue, {result.maintenance_count} maintenance",
        data=result.to_dict(),
    )
