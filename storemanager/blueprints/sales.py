"""
Sales blueprint - POS screen, cart, checkout and receipts (owner-scoped).

The cart lives in the Flask session as {'items': {product_id: {'qty': n}}}
and is rebuilt against the current sellable products on every request.
"""
from typing import Union

from flask import Blueprint, render_template, request, redirect, url_for, flash, session, g, current_app, Response, jsonify, send_file

from storemanager.database import get_session
from storemanager.middleware import require_login
from storemanager.exceptions import BusinessLogicError, InsufficientStockError, CheckoutError, NotFoundError
from storemanager.services.cart_service import Cart
from storemanager.services.sales_service import load_cart, checkout as checkout_cart, get_sale
from storemanager.services.catalog_service import get_sellable_products
from storemanager.services.receipt_service import sale_receipt_data, render_receipt_pdf
from storemanager.blueprints.metrics import sales_completed_total, checkout_failures_total

sales_bp = Blueprint('sales', __name__, url_prefix='/sales')

CART_SESSION_KEY = 'cart'
LAST_SALE_SESSION_KEY = 'last_sale_id'


def get_cart() -> Cart:
    """Cart of the signed-in owner, rebuilt from the session."""
    return load_cart(get_session(), g.owner_id, session.get(CART_SESSION_KEY))


def save_cart(cart: Cart) -> None:
    session[CART_SESSION_KEY] = cart.to_session()
    session.modified = True


def _wants_json() -> bool:
    return request.is_json or request.accept_mimetypes.best == 'application/json'


def _payload() -> dict:
    if request.is_json:
        return request.get_json(silent=True) or {}
    return request.form.to_dict()


def _product_id(payload: dict) -> int:
    try:
        return int(payload.get('product_id'))
    except (TypeError, ValueError):
        raise BusinessLogicError('Select a product.')


def _cart_response(cart: Cart) -> Union[Response, tuple]:
    if _wants_json():
        total, profit = cart.totals()
        return jsonify({
            'status': 'ok',
            'items': cart.snapshot(),
            'total': total,
            'profit': profit,
        })
    return redirect(url_for('sales.new_sale'))


def _store_info() -> dict:
    return {
        'name': current_app.config.get('STORE_NAME', 'StoreManager Pro'),
        'currency': current_app.config.get('CURRENCY_SYMBOL', ''),
    }


@sales_bp.route('/new')
@require_login
def new_sale() -> str:
    """POS screen: product selector, cart and the last completed invoice."""
    db_session = get_session()
    products = get_sellable_products(db_session, g.owner_id)
    cart = Cart.from_session(session.get(CART_SESSION_KEY), products)
    cart_total, cart_profit = cart.totals()

    last_sale = None
    last_sale_id = session.get(LAST_SALE_SESSION_KEY)
    if last_sale_id:
        try:
            last_sale = get_sale(db_session, g.owner_id, last_sale_id)
        except NotFoundError:
            session.pop(LAST_SALE_SESSION_KEY, None)

    return render_template(
        'sales/new.html',
        products=products,
        cart=cart,
        cart_total=cart_total,
        cart_profit=cart_profit,
        last_sale=last_sale
    )


@sales_bp.route('/cart/add', methods=['POST'])
@require_login
def cart_add() -> Union[Response, tuple]:
    """Add a product to the cart, merging with an existing line."""
    payload = _payload()
    product_id = _product_id(payload)

    cart = get_cart()
    line = cart.add_line(product_id, payload.get('qty', 1))
    save_cart(cart)

    current_app.logger.info(
        f"[cart_add] owner_id={g.owner_id}, product_id={product_id}, qty={line.quantity}"
    )
    if not _wants_json():
        flash(f'"{line.product.name}" added to the cart', 'success')
    return _cart_response(cart)


@sales_bp.route('/cart/update', methods=['POST'])
@require_login
def cart_update() -> Union[Response, tuple]:
    """Set a line's quantity; zero or less removes it."""
    payload = _payload()
    product_id = _product_id(payload)

    cart = get_cart()
    cart.set_line_quantity(product_id, payload.get('qty', 0))
    save_cart(cart)
    return _cart_response(cart)


@sales_bp.route('/cart/remove', methods=['POST'])
@require_login
def cart_remove() -> Union[Response, tuple]:
    """Remove a product from the cart. Unknown products are ignored."""
    product_id = _product_id(_payload())

    cart = get_cart()
    cart.remove_line(product_id)
    save_cart(cart)
    return _cart_response(cart)


@sales_bp.route('/checkout', methods=['POST'])
@require_login
def checkout() -> Union[Response, tuple]:
    """Commit the cart as a sale. The cart is kept intact on any failure."""
    cart = get_cart()

    try:
        invoice = checkout_cart(get_session(), cart, g.owner_id)
    except InsufficientStockError:
        checkout_failures_total.labels(reason='insufficient_stock').inc()
        raise
    except CheckoutError:
        checkout_failures_total.labels(reason='database').inc()
        raise
    except BusinessLogicError:
        checkout_failures_total.labels(reason='rejected').inc()
        raise

    sales_completed_total.inc()
    save_cart(cart)
    session[LAST_SALE_SESSION_KEY] = invoice['sale_id']

    if _wants_json():
        return jsonify({'status': 'ok', 'invoice': invoice}), 201

    flash(f"Sale {invoice['invoice_number']} completed successfully.", 'success')
    return redirect(url_for('sales.new_sale'))


@sales_bp.route('/<int:sale_id>/receipt')
@require_login
def receipt(sale_id: int) -> str:
    """Printable receipt of a completed sale."""
    sale = sale_receipt_data(get_session(), g.owner_id, sale_id)
    return render_template('sales/receipt.html', sale=sale, store=_store_info())


@sales_bp.route('/<int:sale_id>/receipt.pdf')
@require_login
def receipt_pdf(sale_id: int) -> Response:
    """Receipt of a completed sale as a PDF download."""
    sale = sale_receipt_data(get_session(), g.owner_id, sale_id)
    pdf_buffer = render_receipt_pdf(sale, _store_info())

    return send_file(
        pdf_buffer,
        mimetype='application/pdf',
        as_attachment=True,
        download_name=f"{sale['invoice_number']}.pdf"
    )
