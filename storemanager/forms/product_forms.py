"""
Product forms.
"""
from flask_wtf import FlaskForm
from wtforms import DecimalField, IntegerField, SelectField, StringField
from wtforms.validators import DataRequired, InputRequired, NumberRange, Length

from storemanager.models import PRODUCT_CATEGORIES


class ProductForm(FlaskForm):
    """Form for creating and editing a product."""

    name = StringField(
        'Product name',
        validators=[
            DataRequired(message='Name is required'),
            Length(max=200)
        ],
        render_kw={'placeholder': 'e.g. Mineral water 1L'}
    )

    category = SelectField(
        'Category',
        choices=[(c, c) for c in PRODUCT_CATEGORIES],
        validators=[DataRequired(message='Category is required')]
    )

    quantity = IntegerField(
        'Quantity in stock',
        validators=[
            InputRequired(message='Quantity is required'),
            NumberRange(min=0, message='Quantity must be at least 0')
        ],
        default=0,
        render_kw={'min': '0'}
    )

    min_quantity = IntegerField(
        'Minimum quantity',
        validators=[
            InputRequired(message='Minimum quantity is required'),
            NumberRange(min=1, message='Minimum quantity must be at least 1')
        ],
        default=5,
        render_kw={'min': '1'}
    )

    purchase_price = DecimalField(
        'Purchase price',
        validators=[
            InputRequired(message='Purchase price is required'),
            NumberRange(min=0, message='Purchase price must be greater than or equal to 0')
        ],
        places=2,
        render_kw={'placeholder': '0.00', 'step': '0.01', 'min': '0'}
    )

    selling_price = DecimalField(
        'Selling price',
        validators=[
            InputRequired(message='Selling price is required'),
            NumberRange(min=0, message='Selling price must be greater than or equal to 0')
        ],
        places=2,
        render_kw={'placeholder': '0.00', 'step': '0.01', 'min': '0'}
    )

    def product_data(self):
        """Field values as passed to the catalog service."""
        return {
            'name': self.name.data,
            'category': self.category.data,
            'quantity': self.quantity.data,
            'min_quantity': self.min_quantity.data,
            'purchase_price': self.purchase_price.data,
            'selling_price': self.selling_price.data,
        }
