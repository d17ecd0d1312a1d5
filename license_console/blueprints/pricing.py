"""Price administration: license type base prices and module prices."""
import logging

from flask import Blueprint, jsonify

from license_console.database import get_session
from license_console.decorators.admin_security import admin_required
from license_console.exceptions import ValidationError
from license_console.services import pricing_service
from license_console.services.organization_service import list_modules
from license_console.utils.parsing import parse_price
from license_console.utils.request_helpers import get_json_body

logger = logging.getLogger(__name__)

pricing_bp = Blueprint('pricing', __name__, url_prefix='/api')


def _price_from_body(allow_none=False):
    payload = get_json_body()
    if 'price' not in payload:
        raise ValidationError('price is required')
    try:
        return parse_price(payload['price'], allow_none=allow_none)
    except ValueError as e:
        raise ValidationError(str(e))


@pricing_bp.route('/license-types/prices', methods=['GET'])
@admin_required
def list_license_type_prices():
    session = get_session()
    return jsonify({'licenseTypes': pricing_service.list_license_type_prices(session)})


@pricing_bp.route('/license-types/<license_type>/price', methods=['POST'])
@admin_required
def update_license_type_price(license_type):
    """Override the monthly base price of a license type."""
    session = get_session()
    price = _price_from_body()

    row = pricing_service.set_license_type_price(session, license_type, price)
    session.commit()

    return jsonify({'success': True, 'licenseType': row.license_type, 'price': float(row.price)})


@pricing_bp.route('/modules/list', methods=['GET'])
@admin_required
def list_all_modules():
    session = get_session()
    return jsonify({'modules': [module.to_dict() for module in list_modules(session)]})


@pricing_bp.route('/modules/<int:module_id>/price', methods=['POST'])
@admin_required
def update_module_price(module_id):
    """Set a module's monthly price; null makes it free."""
    session = get_session()
    price = _price_from_body(allow_none=True)

    module = pricing_service.set_module_price(session, module_id, price)
    session.commit()

    return jsonify({'success': True, 'module': module.to_dict()})
