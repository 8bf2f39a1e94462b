from flask_restx import Namespace, Resource, fields
from flask import request
import logging
from petavet import db
from petavet.models import Product
from petavet.services.product_service import (
    create_product, discontinue_product, format_product, list_products, update_product
)
from petavet.utils.auth_middleware import login_required
from petavet.utils.util import parse_id, permission_required

logger = logging.getLogger(__name__)

product_ns = Namespace('products', path='/store/products', description='Marketplace catalogue')

product_model = product_ns.model('Product', {
    'name': fields.String(required=True),
    'category': fields.String(required=True),
    'description': fields.String(),
    'price': fields.Float(required=True),
    'cost': fields.Float(),
    'stock': fields.Integer(),
    'requiresPrescription': fields.Boolean(),
    'manufacturer': fields.String(),
    'imageUrl': fields.String(),
    'status': fields.String(description='ACTIVE, DISCONTINUED or OUT_OF_STOCK')
})


def _product_id():
    raw_id = request.args.get('id')
    if not raw_id:
        return None, ({'error': 'Product ID is required'}, 400)
    product_id = parse_id(raw_id)
    if product_id is None:
        return None, ({'error': 'Invalid product ID'}, 400)
    return product_id, None


@product_ns.route('')
class ProductList(Resource):
    @product_ns.doc('list_products', params={
        'id': 'Product ID', 'category': 'Category', 'search': 'Name or description', 'featured': 'Any value'
    })
    def get(self):
        """Browse the catalogue"""
        try:
            if request.args.get('id'):
                product_id = parse_id(request.args['id'])
                if product_id is None:
                    return {'error': 'Invalid product ID'}, 400
                product = db.session.get(Product, product_id)
                if not product:
                    return {'error': 'Product not found'}, 404
                return format_product(product), 200

            products = list_products(
                category=request.args.get('category'),
                search=request.args.get('search'),
                featured=bool(request.args.get('featured'))
            )
            return {'products': products}, 200
        except Exception as e:
            logger.error(f"Error fetching products: {str(e)}")
            return {'error': 'Failed to fetch products'}, 500

    @login_required
    @permission_required('write:inventory')
    @product_ns.expect(product_model)
    def post(self):
        """Add a product"""
        data = request.get_json(silent=True) or {}
        try:
            result, error, status = create_product(data)
            return (result, status) if result is not None else (error, status)
        except Exception as e:
            db.session.rollback()
            logger.error(f"Error creating product: {str(e)}")
            return {'error': 'Failed to create product'}, 500

    @login_required
    @permission_required('write:inventory')
    @product_ns.expect(product_model)
    @product_ns.doc('update_product', params={'id': 'Product ID'})
    def put(self):
        """Update a product"""
        product_id, error = _product_id()
        if error:
            return error
        data = request.get_json(silent=True) or {}
        try:
            result, error, status = update_product(product_id, data)
            return (result, status) if result is not None else (error, status)
        except Exception as e:
            db.session.rollback()
            logger.error(f"Error updating product {product_id}: {str(e)}")
            return {'error': 'Failed to update product'}, 500

    @login_required
    @permission_required('write:inventory')
    @product_ns.doc('delete_product', params={'id': 'Product ID'})
    def delete(self):
        """Take a product off sale"""
        product_id, error = _product_id()
        if error:
            return error
        try:
            return discontinue_product(product_id)
        except Exception as e:
            db.session.rollback()
            logger.error(f"Error deleting product {product_id}: {str(e)}")
            return {'error': 'Failed to delete product'}, 500
