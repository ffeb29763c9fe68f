"""
Authorization policy for products
"""
from typing import Any

from catalog.exceptions import ForbiddenError
from catalog.models.product import Product
from catalog.models.user import User


class ProductPolicy:
    def list(self, user: User, subject: Any = None) -> bool:
        return True

    def show(self, user: User, subject: Any = None) -> bool:
        return True

    def store(self, user: User, subject: Any = None) -> bool:
        return user.is_root() or user.has_supplier() or user.has_permission("product_store")

    def update(self, user: User, product: Product) -> bool:
        return product.is_editable_by(user)

    # Whether a product may actually be deleted is decided by the service
    def destroy(self, user: User, product: Product) -> bool:
        return user.is_root() or product.is_editable_by(user)

    def restore(self, user: User, product: Product) -> bool:
        return self.destroy(user, product)


POLICIES = {
    Product: ProductPolicy(),
}


def authorize(user: User, action: str, subject: Any) -> None:
    """Raise ForbiddenError unless `user` may perform `action` on `subject` (instance or class)."""
    model = subject if isinstance(subject, type) else type(subject)
    policy = POLICIES.get(model)
    check = getattr(policy, action, None)
    if check is None or not check(user, None if subject is model else subject):
        raise ForbiddenError(action, model.__name__.lower())
