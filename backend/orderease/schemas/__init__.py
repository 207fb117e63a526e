from orderease.schemas.auth import LoginRequest, RegisterRequest, TokenResponse
from orderease.schemas.shop import ShopCreate, ShopOut, ShopUpdate
from orderease.schemas.product import ProductCreate, ProductOut, ProductUpdate
from orderease.schemas.order import CreateOrderRequest, OrderDetail, OrderSummary
from orderease.schemas.status_flow import OrderStatusFlow, OrderStatusNode, OrderStatusAction
from orderease.schemas.tag import TagCreate, TagOut, TagUpdate
