# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

"""Sales API routes

Any signed-in user can ring up and look at sales; deleting and exporting are
admin-only.
"""

from flask import Blueprint, request, jsonify, g, current_app, Response

from ..decorators import require_auth, require_admin
from ..services import sales_service, receipt_service, export_service
from ..services.sales_service import SaleError, SaleNotFoundError
from ..services.permission_service import PermissionDeniedError
from ..validation import ValidationError, parse_money


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _money(value, message: str, details: dict | None = None, required: bool = False):
    try:
        cents = parse_money("amount", value)
    except ValidationError:
        raise SaleError(message, details=details)
    if cents is None and required:
        raise SaleError(message, details=details)
    return cents


def _sale_items(items):
    """Wire lines {productId, quantity, price} to service lines in cents."""
    if not isinstance(items, list):
        return items
    lines = []
    for idx, item in enumerate(items):
        if not isinstance(item, dict):
            lines.append(item)
            continue
        lines.append({
            "product_id": item.get("productId"),
            "quantity": item.get("quantity"),
            "price_cents": _money(item.get("price"), "Invalid item price", {"index": idx}, required=True),
        })
    return lines


@sales_bp.post("")
@require_auth
def create_sale_route():
    """
    Ring up a sale. Amounts are in major units (Taka).

    Request body:
    {
        "items": [{"productId": 1, "quantity": 3, "price": 10}],
        "total": 80,
        "discount": 0,                              // optional
        "customer": {"phone": "...", "name": "..."} // optional
    }
    """
    try:
        data = request.get_json(silent=True) or {}

        sale = sales_service.create_sale(
            g.auth,
            items=_sale_items(data.get("items")),
            total_cents=_money(data.get("total"), "Invalid total amount"),
            discount_cents=_money(data.get("discount"), "Invalid discount amount"),
            customer=data.get("customer"),
        )

        return jsonify({"success": True, "sale": sale.to_dict()}), 201

    except SaleError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("")
@require_auth
def list_sales_route():
    try:
        sales = sales_service.list_sales()
        return jsonify([s.to_dict() for s in sales])
    except Exception:
        current_app.logger.exception("Failed to list sales")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("/export")
@require_auth
@require_admin("export sales")
def export_sales_route():
    """Every sale as an .xlsx download, newest first."""
    try:
        sales = sales_service.list_sales()
        payload = export_service.sales_workbook_bytes(
            sales, symbol=current_app.config.get("CURRENCY_SYMBOL", "৳")
        )
        filename = export_service.export_filename()
        return Response(
            payload,
            mimetype=XLSX_MIMETYPE,
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )
    except Exception:
        current_app.logger.exception("Failed to export sales")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("/<int:sale_id>")
@require_auth
def get_sale_route(sale_id: int):
    try:
        sale = sales_service.get_sale(sale_id)
        return jsonify(sale.to_dict())
    except SaleNotFoundError:
        return jsonify({"error": "Sale not found"}), 404
    except Exception:
        current_app.logger.exception("Failed to fetch sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("/<int:sale_id>/receipt")
@require_auth
def receipt_route(sale_id: int):
    """57mm thermal receipt as printable HTML."""
    try:
        sale = sales_service.get_sale(sale_id)
        html = receipt_service.render_receipt(sale)
        return Response(html, mimetype="text/html")
    except SaleNotFoundError:
        return jsonify({"error": "Sale not found"}), 404
    except Exception:
        current_app.logger.exception("Failed to render receipt")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.delete("/<int:sale_id>")
@require_auth
@require_admin("delete sales")
def delete_sale_route(sale_id: int):
    """Delete a sale and restore its stock. Admin only."""
    try:
        sales_service.delete_sale(g.auth, sale_id)
        return jsonify({
            "success": True,
            "message": "Sale deleted successfully and inventory restored",
        })
    except SaleNotFoundError:
        return jsonify({"error": "Sale not found"}), 404
    except PermissionDeniedError as e:
        return jsonify({"error": "Forbidden", "message": str(e)}), 403
    except SaleError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except Exception:
        current_app.logger.exception("Failed to delete sale")
        return jsonify({"error": "Internal server error"}), 500
