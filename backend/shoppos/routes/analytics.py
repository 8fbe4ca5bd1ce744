# Overview: Flask API route for the yearly dashboard analytics.

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_auth, require_admin
from ..money import cents_to_units
from ..services import reporting_service
from ..services.reporting_service import ReportError


analytics_bp = Blueprint("analytics", __name__, url_prefix="/api/analytics")


def _wire_report(report: dict) -> dict:
    """Dashboard keys and major-unit amounts the front end charts from."""
    return {
        "monthlyData": [
            {
                "month": m["month"],
                "sales": cents_to_units(m["sales_cents"]),
                "expenses": cents_to_units(m["expenses_cents"]),
                "profit": cents_to_units(m["profit_cents"]),
                "profitPercentage": m["profit_percentage"],
            }
            for m in report["monthly_data"]
        ],
        "categoryData": [
            {"name": c["name"], "value": c["value"], "amount": cents_to_units(c["amount_cents"])}
            for c in report["category_data"]
        ],
        "recentTransactions": [
            {
                "id": t["id"],
                "type": t["type"],
                "description": t["description"],
                "amount": cents_to_units(t["amount_cents"]),
                "user": t["user"],
                "date": t["date"],
            }
            for t in report["recent_transactions"]
        ],
        "totals": {
            "sales": cents_to_units(report["totals"]["sales_cents"]),
            "expenses": cents_to_units(report["totals"]["expenses_cents"]),
            "profit": cents_to_units(report["totals"]["profit_cents"]),
        },
        "year": report["year"],
    }


@analytics_bp.get("")
@require_auth
@require_admin("view analytics")
def dashboard_analytics_route():
    """
    Query params:
    - year: int (optional, defaults to the current year)

    Response: {monthlyData, categoryData, recentTransactions, totals, year},
    amounts in Taka.
    """
    year = request.args.get("year")
    if year is not None:
        try:
            year = int(year)
        except ValueError:
            return jsonify({"error": "year must be an integer"}), 400

    try:
        return jsonify(_wire_report(reporting_service.dashboard_analytics(year)))
    except ReportError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to build dashboard analytics")
        return jsonify({"error": "Internal server error"}), 500
