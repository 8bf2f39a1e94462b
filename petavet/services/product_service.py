# Product service module for business logic
from petavet.models import Product, ProductStatus
from petavet import db

FEATURED_LIMIT = 8


def format_product(product):
    return {
        'id': str(product.id),
        'name': product.name,
        'category': product.category,
        'description': product.description,
        'price': product.price,
        'stock': product.stock,
        'requiresPrescription': product.requires_prescription,
        'manufacturer': product.manufacturer,
        'imageUrl': product.image_url,
        'status': product.status.value
    }


def list_products(category=None, search=None, featured=False):
    query = Product.query.filter(Product.status != ProductStatus.DISCONTINUED)
    if category:
        query = query.filter(Product.category == category)
    elif search:
        pattern = f'%{search}%'
        query = query.filter(Product.name.ilike(pattern) | Product.description.ilike(pattern))
    query = query.order_by(Product.name.asc())
    if featured and not category and not search:
        query = query.limit(FEATURED_LIMIT)
    return [format_product(p) for p in query.all()]


def _apply_stock_status(product):
    if product.status != ProductStatus.DISCONTINUED:
        product.status = ProductStatus.ACTIVE if product.stock > 0 else ProductStatus.OUT_OF_STOCK


def create_product(data):
    if not data.get('name') or not data.get('category') or data.get('price') is None:
        return None, {'error': 'Name, category and price are required'}, 400
    try:
        price = float(data['price'])
        stock = int(data.get('stock') or 0)
    except (TypeError, ValueError):
        return None, {'error': 'Price and stock must be numbers'}, 400
    if price < 0 or stock < 0:
        return None, {'error': 'Price and stock cannot be negative'}, 400

    new_product = Product(
        name=data['name'],
        category=data['category'],
        description=data.get('description'),
        price=price,
        cost=float(data.get('cost') or 0),
        stock=stock,
        requires_prescription=bool(data.get('requiresPrescription', False)),
        manufacturer=data.get('manufacturer'),
        image_url=data.get('imageUrl')
    )
    _apply_stock_status(new_product)
    db.session.add(new_product)
    db.session.commit()
    return format_product(new_product), None, 201


def update_product(product_id, data):
    product = db.session.get(Product, product_id)
    if not product:
        return None, {'error': 'Product not found'}, 404
    try:
        product.price = float(data.get('price', product.price))
        product.stock = int(data.get('stock', product.stock))
    except (TypeError, ValueError):
        return None, {'error': 'Price and stock must be numbers'}, 400
    if product.price < 0 or product.stock < 0:
        db.session.rollback()
        return None, {'error': 'Price and stock cannot be negative'}, 400

    product.name = data.get('name', product.name)
    product.category = data.get('category', product.category)
    product.description = data.get('description', product.description)
    product.manufacturer = data.get('manufacturer', product.manufacturer)
    product.image_url = data.get('imageUrl', product.image_url)
    product.requires_prescription = bool(data.get('requiresPrescription', product.requires_prescription))
    if data.get('status'):
        try:
            product.status = ProductStatus(str(data['status']).upper())
        except ValueError:
            db.session.rollback()
            return None, {'error': 'Invalid product status'}, 400
    else:
        _apply_stock_status(product)
    db.session.commit()
    return format_product(product), None, 200


def discontinue_product(product_id):
    """Products stay referenced by past orders, so deletion only discontinues them."""
    product = db.session.get(Product, product_id)
    if not product:
        return {'error': 'Product not found'}, 404
    product.status = ProductStatus.DISCONTINUED
    db.session.commit()
    return {'success': True}, 200
