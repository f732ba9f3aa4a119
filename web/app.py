"""Flask web application for bus fleet maintenance status."""

import logging
from datetime import date
from typing import Optional

from flask import (
    Blueprint,
    Flask,
    Response,
    current_app,
    flash,
    jsonify,
    redirect,
    render_template,
    request,
    url_for,
)

from fleet import COMPONENT_NAMES, COMPONENT_TITLES, UnitStore, UnitUpdate, open_store
from fleet.config import Settings, configure_logging, load_settings
from fleet.exceptions import (
    DuplicateUnitError,
    EmptyExportError,
    InvalidFilterError,
    UnitValidationError,
)
from fleet.export import export_filename, units_to_csv
from fleet.filters import ALL, STATUS_FILTERS, filter_units, fleet_stats
from fleet.snapshot import unit_to_dict
from fleet.status import ComponentStatus, Readiness
from fleet.validation import (
    ensure_unique_number,
    parse_component,
    parse_new_unit,
    parse_status,
)

_logger = logging.getLogger(__name__)

api = Blueprint("api", __name__, url_prefix="/api")
views = Blueprint("views", __name__)

NOT_FOUND_MESSAGE = "Unidad no encontrada"
INVALID_NUMBER_MESSAGE = "Por favor, ingrese un número de unidad válido (1-9999)."


def get_store() -> UnitStore:
    """The store injected by create_app."""
    return current_app.extensions["unit_store"]


def list_filters(args):
    """Read search/status/component filters from a query string."""
    return (
        args.get("search", ""),
        args.get("status", ALL) or ALL,
        args.get("component", ALL) or ALL,
    )


def status_color(status: ComponentStatus) -> str:
    """Get Tailwind color classes for a component cell."""
    colors = {
        ComponentStatus.LISTO: "bg-green-100 text-green-800 border-green-200",
        ComponentStatus.TALLER: "bg-red-100 text-red-800 border-red-200",
    }
    return colors.get(status, "bg-gray-100 text-gray-800")


def readiness_badge_color(readiness: Readiness) -> str:
    """Get Tailwind color classes for a unit's readiness badge."""
    colors = {
        Readiness.READY: "bg-green-500 text-white",
        Readiness.PARTIAL: "bg-yellow-500 text-white",
        Readiness.WORKSHOP: "bg-red-500 text-white",
    }
    return colors.get(readiness, "bg-gray-500 text-white")


# =============================================================================
# JSON API
# =============================================================================


@api.errorhandler(UnitValidationError)
def validation_error(e: UnitValidationError):
    body = {"message": e.message}
    if e.errors:
        body["errors"] = e.errors
    return jsonify(body), 400


@api.route("/units", methods=["GET"])
def list_units():
    """All units, optionally filtered."""
    search, status, component = list_filters(request.args)
    units = filter_units(get_store().list_all(), search, status, component)
    return jsonify([unit_to_dict(u) for u in units])


@api.route("/units/<int:unit_id>", methods=["GET"])
def get_unit(unit_id: int):
    unit = get_store().get(unit_id)
    if unit is None:
        return jsonify(message=NOT_FOUND_MESSAGE), 404
    return jsonify(unit_to_dict(unit))


@api.route("/units", methods=["POST"])
def create_unit():
    """Create a unit after checking the payload and unit number uniqueness."""
    store = get_store()
    fields = parse_new_unit(request.get_json(silent=True))
    ensure_unique_number(store, fields.unit_number)
    unit = store.create(fields)
    _logger.info("Added unit %d", unit.unit_number)
    return jsonify(unit_to_dict(unit)), 201


@api.route("/units/<int:unit_id>/component/<component>", methods=["PATCH"])
def update_component(unit_id: int, component: str):
    """Set the status of one component."""
    parse_component(component)
    body = request.get_json(silent=True) or {}
    status = parse_status(body.get("status") if isinstance(body, dict) else None)

    unit = get_store().update(unit_id, UnitUpdate.for_component(component, status))
    if unit is None:
        return jsonify(message=NOT_FOUND_MESSAGE), 404
    return jsonify(unit_to_dict(unit))


@api.route("/units/<int:unit_id>", methods=["DELETE"])
def delete_unit(unit_id: int):
    if not get_store().delete_one(unit_id):
        return jsonify(message=NOT_FOUND_MESSAGE), 404
    return "", 204


@api.route("/units", methods=["DELETE"])
def delete_all_units():
    get_store().delete_all()
    _logger.info("Deleted all units")
    return "", 204


@api.route("/stats", methods=["GET"])
def stats():
    """Dashboard counts: total, ready, partial, workshop."""
    return jsonify(fleet_stats(get_store().list_all()).to_dict())


@api.route("/export.csv", methods=["GET"])
def export_csv():
    """Download the whole fleet as CSV."""
    try:
        content = units_to_csv(get_store().list_all())
    except EmptyExportError as e:
        return jsonify(message=str(e)), 404
    return Response(
        content,
        mimetype="text/csv",
        headers={
            "Content-Disposition": f'attachment; filename="{export_filename(date.today())}"'
        },
    )


# =============================================================================
# Dashboard
# =============================================================================


def redirect_back():
    """Return to the page (with its filters) that submitted the form."""
    target = request.form.get("next", "")
    if not target.startswith("/") or target.startswith("//"):
        target = url_for("views.index")
    return redirect(target)


@views.route("/")
def index():
    """Fleet table with statistics, search and filters."""
    search, status, component = list_filters(request.args)
    units = get_store().list_all()
    try:
        filtered = filter_units(units, search, status, component)
    except InvalidFilterError:
        flash("Filtro inválido", "error")
        status, component = ALL, ALL
        filtered = filter_units(units, search)

    return render_template(
        "index.html",
        units=filtered,
        stats=fleet_stats(units),
        total_units=len(units),
        component_names=COMPONENT_NAMES,
        component_titles=COMPONENT_TITLES,
        status_filters=list(STATUS_FILTERS),
        search=search,
        status_filter=status,
        component_filter=component,
    )


@views.route("/units", methods=["POST"])
def add_unit_form():
    """Handle add unit form submission."""
    store = get_store()
    try:
        fields = parse_new_unit(
            {"unitNumber": request.form.get("unitNumber", "")}, allow_text=True
        )
        ensure_unique_number(store, fields.unit_number)
    except DuplicateUnitError as e:
        flash(e.message, "error")
        return redirect_back()
    except UnitValidationError:
        flash(INVALID_NUMBER_MESSAGE, "error")
        return redirect_back()

    unit = store.create(fields)
    flash(f"Unidad {unit.unit_number} agregada", "success")
    return redirect_back()


@views.route("/units/<int:unit_id>/toggle/<component>", methods=["POST"])
def toggle_component_form(unit_id: int, component: str):
    """Flip one component between listo and taller."""
    store = get_store()
    unit = store.get(unit_id)
    if unit is None or component not in COMPONENT_NAMES:
        flash(NOT_FOUND_MESSAGE if unit is None else "Componente inválido", "error")
        return redirect_back()

    new_status = unit.status(component).toggled()
    store.update(unit_id, UnitUpdate.for_component(component, new_status))
    return redirect_back()


@views.route("/units/<int:unit_id>/delete", methods=["POST"])
def delete_unit_form(unit_id: int):
    store = get_store()
    unit = store.get(unit_id)
    if unit is None:
        flash(NOT_FOUND_MESSAGE, "error")
    else:
        store.delete_one(unit_id)
        flash(f"Unidad {unit.unit_number} eliminada", "success")
    return redirect_back()


@views.route("/units/clear", methods=["POST"])
def clear_units_form():
    get_store().delete_all()
    flash("Todas las unidades fueron eliminadas", "success")
    return redirect_back()


# =============================================================================
# App factory
# =============================================================================


def internal_error(e):
    """JSON body for unexpected API errors, default page elsewhere."""
    if request.path.startswith("/api/"):
        return jsonify(message="Error interno del servidor"), 500
    return e


def create_app(
    store: Optional[UnitStore] = None, settings: Optional[Settings] = None
) -> Flask:
    """
    Build the web app around a store.

    The store is created once here (or passed in) and shared by every
    request through app.extensions["unit_store"].
    """
    settings = settings or load_settings()
    if store is None:
        store = open_store(settings.snapshot_path)

    app = Flask(__name__)
    app.secret_key = settings.secret_key
    app.config["FLEET_SETTINGS"] = settings
    app.extensions["unit_store"] = store

    # Register template filters
    app.jinja_env.filters["status_color"] = status_color
    app.jinja_env.filters["readiness_badge_color"] = readiness_badge_color

    app.register_blueprint(api)
    app.register_blueprint(views)
    app.register_error_handler(500, internal_error)
    return app


def main():
    settings = load_settings()
    configure_logging(settings.log_level)
    if settings.in_memory:
        _logger.warning("Snapshot disabled, units will not survive a restart")
    app = create_app(settings=settings)
    # Access from phone: use your computer's local IP (e.g., 192.168.1.x:5001)
    app.run(debug=settings.log_level == "DEBUG", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
