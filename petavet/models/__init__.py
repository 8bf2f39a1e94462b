from .user_model import User, Role, UserStatus
from .pet_model import Pet, PetStatus
from .appointment_model import Appointment, AppointmentStatus, ServiceType, INACTIVE_STATUSES
from .medical_record_model import MedicalRecord, RecordStatus
from .product_model import Product, ProductStatus
from .order_model import Order, OrderItem, ORDER_STATUSES, ORDER_STATUS_TRANSITIONS
from .subscription_model import Subscription, CustomerSubscription, CustomerSubscriptionStatus
