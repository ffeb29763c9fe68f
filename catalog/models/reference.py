"""
Reference data a product points at: brand, food category, density, nutrition
"""
from sqlalchemy import Column, Integer, String, Float
from catalog.database import Base


class Brand(Base):
    __tablename__ = "brands"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)


class FoodCategory(Base):
    __tablename__ = "food_categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)


class Density(Base):
    """Mass per volume, used to turn litres into kilograms."""
    __tablename__ = "densities"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    value = Column(Float, nullable=False)  # g/ml


class Nutrition(Base):
    """Nutrient values per 100g of product."""
    __tablename__ = "nutritions"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    energy_kcal = Column(Float, nullable=True)
    fat = Column(Float, nullable=True)
    saturates = Column(Float, nullable=True)
    carbohydrate = Column(Float, nullable=True)
    sugars = Column(Float, nullable=True)
    fibre = Column(Float, nullable=True)
    protein = Column(Float, nullable=True)
    salt = Column(Float, nullable=True)
