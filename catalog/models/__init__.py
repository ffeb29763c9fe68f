from catalog.models.user import User
from catalog.models.supplier import Supplier
from catalog.models.reference import Brand, FoodCategory, Density, Nutrition
from catalog.models.diet import Diet
from catalog.models.availability import SeasonStatus, ProductAvailability
from catalog.models.preparation import Preparation
from catalog.models.product_pack import ProductPack
from catalog.models.tag import Tag
from catalog.models.nutrition_info import NutritionInfo
from catalog.models.media import Media
from catalog.models.edit_log import EditLog
from catalog.models.recipe import Recipe, RecipeIngredient
from catalog.models.product import Product

__all__ = [
    "User",
    "Supplier",
    "Brand",
    "FoodCategory",
    "Density",
    "Nutrition",
    "Diet",
    "SeasonStatus",
    "ProductAvailability",
    "Preparation",
    "ProductPack",
    "Tag",
    "NutritionInfo",
    "Media",
    "EditLog",
    "Recipe",
    "RecipeIngredient",
    "Product",
]
