from flask import Blueprint, request

from filegate.common.auth import get_current_identity, token_required
from filegate.common.context import get_context
from filegate.common.response import fail, success
from filegate.services.reconcile_service import ReconcileService

admin_bp = Blueprint('admin', __name__)


@admin_bp.route('/drift', methods=['GET'])
@token_required()
def storage_drift():
    report, err = ReconcileService.find_drift(get_context(), get_current_identity(), request.args.get("bucketName"))
    if err:
        return fail(err)
    return success(report)
