"""Database models for the course marketplace API."""
from app.models.user import User, UserRole
from app.models.creator_profile import CreatorProfile
from app.models.category import Category
from app.models.video_asset import VideoAsset
from app.models.product import Product, ProductStatus, ProductType, Level
from app.models.purchase import Purchase, PurchaseStatus
from app.models.purchase_refund import PurchaseRefund

__all__ = [
    "User",
    "UserRole",
    "CreatorProfile",
    "Category",
    "VideoAsset",
    "Product",
    "ProductStatus",
    "ProductType",
    "Level",
    "Purchase",
    "PurchaseStatus",
    "PurchaseRefund",
]
