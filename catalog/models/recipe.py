"""
Recipe models - recipes consume product packs as ingredients
"""
from sqlalchemy import Column, Integer, String, Float, ForeignKey
from sqlalchemy.orm import relationship
from catalog.database import Base


class Recipe(Base):
    __tablename__ = "recipes"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)

    ingredients = relationship("RecipeIngredient", back_populates="recipe", cascade="all, delete-orphan")


class RecipeIngredient(Base):
    __tablename__ = "recipe_ingredients"

    id = Column(Integer, primary_key=True, index=True)
    recipe_id = Column(Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False)
    # No FK: packs are removed by product reconciliation while recipes keep the reference
    product_pack_id = Column(Integer, nullable=False, index=True)
    quantity = Column(Float, nullable=True)

    recipe = relationship("Recipe", back_populates="ingredients")
