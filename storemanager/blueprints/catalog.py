"""Catalog blueprint for products management (owner-scoped)."""
from flask import Blueprint, render_template, request, redirect, url_for, flash, g, current_app, Response
from typing import Union

from storemanager.database import get_session
from storemanager.middleware import require_login
from storemanager.forms.product_forms import ProductForm
from storemanager.exceptions import ValidationError, NotFoundError
from storemanager.services import catalog_service

catalog_bp = Blueprint('catalog', __name__, url_prefix='/products')


@catalog_bp.route('/')
@require_login
def list_products() -> Union[str, Response]:
    """List the owner's products, newest first, with optional search."""
    search_query = request.args.get('q', '').strip()

    products = catalog_service.get_products(get_session(), g.owner_id)
    filtered = catalog_service.filter_products(products, search_query)

    return render_template(
        'products/list.html',
        products=filtered,
        total_count=len(products),
        low_stock_count=len(catalog_service.low_stock(products)),
        search_query=search_query
    )


@catalog_bp.route('/new', methods=['GET', 'POST'])
@require_login
def new_product() -> Union[str, Response, tuple]:
    """Product form; on success the product is created and the catalog shown."""
    form = ProductForm()
    if request.method == 'GET':
        form.min_quantity.data = current_app.config.get('DEFAULT_MIN_QUANTITY', 5)

    if form.validate_on_submit():
        try:
            product = catalog_service.create_product(get_session(), g.owner_id, form.product_data())
        except ValidationError as e:
            form.form_errors.extend(e.errors)
        else:
            flash(f'Product "{product.name}" created successfully', 'success')
            return redirect(url_for('catalog.list_products'))

    status = 400 if request.method == 'POST' else 200
    return render_template('products/form.html', form=form, product=None), status


@catalog_bp.route('/<int:product_id>/edit', methods=['GET', 'POST'])
@require_login
def edit_product(product_id: int) -> Union[str, Response, tuple]:
    """Edit form prefilled with the product; updates the row in place."""
    session = get_session()
    product = catalog_service.get_product(session, g.owner_id, product_id)
    form = ProductForm(obj=product)

    if form.validate_on_submit():
        try:
            catalog_service.update_product(session, g.owner_id, product_id, form.product_data())
        except ValidationError as e:
            form.form_errors.extend(e.errors)
        else:
            flash(f'Product "{product.name}" updated successfully', 'success')
            return redirect(url_for('catalog.list_products'))

    status = 400 if request.method == 'POST' else 200
    return render_template('products/form.html', form=form, product=product), status


@catalog_bp.route('/<int:product_id>/delete', methods=['POST'])
@require_login
def delete_product(product_id: int) -> Response:
    """Delete a product permanently. Sales history keeps the product name."""
    try:
        product_name = catalog_service.delete_product(get_session(), g.owner_id, product_id)
    except NotFoundError:
        flash('Product not found.', 'warning')
        return redirect(url_for('catalog.list_products'))

    flash(f'Product "{product_name}" deleted successfully', 'success')
    return redirect(url_for('catalog.list_products'))
