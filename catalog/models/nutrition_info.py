"""
Nutrition info - per age group breakdown of a product's nutrition,
shown as the nutrition graph
"""
from sqlalchemy import Column, Integer, String, Float
from catalog.database import Base


# Reference daily intake per age group, in the unit listed in NUTRIENTS
REFERENCE_INTAKES = {
    "adult": {
        "energy_kcal": 2000, "fat": 70, "saturates": 20, "carbohydrate": 260,
        "sugars": 90, "fibre": 30, "protein": 50, "salt": 6,
    },
    "child": {
        "energy_kcal": 1800, "fat": 70, "saturates": 20, "carbohydrate": 220,
        "sugars": 85, "fibre": 20, "protein": 24, "salt": 4,
    },
}

AGE_GROUPS = list(REFERENCE_INTAKES)

# (Nutrition column, label, unit) in graph order
NUTRIENTS = [
    ("energy_kcal", "Energy", "kcal"),
    ("fat", "Fat", "g"),
    ("saturates", "Saturates", "g"),
    ("carbohydrate", "Carbohydrate", "g"),
    ("sugars", "Sugars", "g"),
    ("fibre", "Fibre", "g"),
    ("protein", "Protein", "g"),
    ("salt", "Salt", "g"),
]


class NutritionInfo(Base):
    __tablename__ = "nutrition_info"

    id = Column(Integer, primary_key=True, index=True)

    # Polymorphic owner (products today)
    infoable_type = Column(String, nullable=False, index=True)
    infoable_id = Column(Integer, nullable=False, index=True)

    age_group = Column(String, nullable=False)
    index = Column(Integer, nullable=False, default=0)
    name = Column(String, nullable=False)
    value = Column(Float, nullable=False)  # per 100g
    unit = Column(String, nullable=False)
    percent = Column(Float, nullable=True)  # of the age group's reference intake
