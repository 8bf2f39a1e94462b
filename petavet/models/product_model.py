import enum
from petavet import db
from petavet.utils.time_utils import utcnow


class ProductStatus(enum.Enum):
    ACTIVE = 'ACTIVE'
    DISCONTINUED = 'DISCONTINUED'
    OUT_OF_STOCK = 'OUT_OF_STOCK'


class Product(db.Model):
    __tablename__ = 'product'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    category = db.Column(db.String(50), nullable=False, index=True)
    description = db.Column(db.String(500))
    price = db.Column(db.Float, nullable=False)
    cost = db.Column(db.Float, nullable=False, default=0.0)
    stock = db.Column(db.Integer, nullable=False, default=0)
    requires_prescription = db.Column(db.Boolean, nullable=False, default=False)
    manufacturer = db.Column(db.String(100))
    image_url = db.Column(db.String(255))
    status = db.Column(db.Enum(ProductStatus), nullable=False, default=ProductStatus.ACTIVE)
    created_at = db.Column(db.DateTime, default=utcnow)

    def __repr__(self):
        return f'<Product {self.name}>'
