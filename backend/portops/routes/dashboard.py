# backend/portops/routes/dashboard.py
"""
Operations dashboard KPIs (read-only).
"""
from flask import Blueprint, jsonify
from ..decorators import require_operator, require_permission
from ..services import reporting_service


dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("")
@require_operator
@require_permission("VIEW_DASHBOARD")
def get_dashboard():
    return jsonify(reporting_service.get_dashboard_kpis()), 200
