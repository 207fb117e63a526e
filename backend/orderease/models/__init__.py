from orderease.models.base import Base
from orderease.models.admin import Admin
from orderease.models.shop import Shop
from orderease.models.user import User
from orderease.models.product import Product, ProductOptionCategory, ProductOption
from orderease.models.order import Order, OrderItem, OrderItemOption, OrderStatusLog
from orderease.models.token import BlacklistedToken, TempToken
from orderease.models.tag import Tag, ProductTag
